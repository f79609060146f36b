"""Rule store initialization."""
from .base import RuleStore
from .memory import MemoryRuleStore
from .redis import RedisRuleStore

__all__ = [
    "RuleStore",
    "MemoryRuleStore",
    "RedisRuleStore",
]
