from __future__ import annotations

from typing import Optional, Protocol


class RuleStore(Protocol):
    """Interface for stores that persist packed rule sets."""

    def get(self, key: str) -> Optional[bytes]:
        """Retrieve a packed rule set."""
        ...

    def set(self, key: str, value: bytes, ttl_seconds: int = 0) -> None:
        """Store a packed rule set. A ttl of 0 means no expiry."""
        ...

    def delete(self, key: str) -> None:
        """Delete a packed rule set."""
        ...

    def health_check(self) -> bool:
        """Check if the store is healthy."""
        ...
