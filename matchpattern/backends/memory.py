from __future__ import annotations

import time
from typing import Dict, List, Optional, Tuple

from .base import RuleStore


class MemoryRuleStore(RuleStore):
    """In-memory rule store with optional TTL."""

    def __init__(self) -> None:
        # Store tuples of (value, expiry_timestamp); expiry None never expires
        self._data: Dict[str, Tuple[bytes, Optional[float]]] = {}

    def get(self, key: str) -> Optional[bytes]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.time() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: bytes, ttl_seconds: int = 0) -> None:
        expires_at = time.time() + ttl_seconds if ttl_seconds > 0 else None
        self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def health_check(self) -> bool:
        return True

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def clear(self) -> None:
        self._data.clear()
