from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

import redis

from .base import RuleStore

logger = logging.getLogger(__name__)


@dataclass
class RedisRuleStore(RuleStore):
    redis_url: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    key_prefix: str = os.environ.get("MATCHPATTERN_PREFIX", "matchpattern:")

    def __post_init__(self) -> None:
        try:
            self._client = redis.from_url(self.redis_url)
        except Exception as e:
            # Redact password from URL
            safe_url = re.sub(r'://([^:@/]*):[^@]+@', r'://\1:***@', self.redis_url)
            logger.error(f"Failed to connect to Redis at {safe_url}: {e}")
            raise

    def _k(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self._client.get(self._k(key))
        except redis.RedisError as e:
            logger.error(f"Redis GET error for rule set {key}: {e}")
            return None

    def set(self, key: str, value: bytes, ttl_seconds: int = 0) -> None:
        try:
            self._client.set(self._k(key), value, ex=ttl_seconds if ttl_seconds > 0 else None)
        except redis.RedisError as e:
            logger.error(f"Redis SET error for rule set {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._k(key))
        except redis.RedisError as e:
            logger.error(f"Redis DELETE error for rule set {key}: {e}")

    def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def keys(self) -> List[str]:
        """Names of all stored rule sets under the prefix."""
        try:
            raw_keys = self._client.keys(f"{self.key_prefix}*")
        except redis.RedisError as e:
            logger.error(f"Redis KEYS error: {e}")
            return []
        names = []
        for raw in raw_keys:
            name = raw.decode() if isinstance(raw, bytes) else raw
            names.append(name[len(self.key_prefix):])
        return names

    def close(self) -> None:
        """Close the Redis connection."""
        try:
            self._client.close()
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
