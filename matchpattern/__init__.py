from .backends.base import RuleStore
from .backends.memory import MemoryRuleStore
from .backends.redis import RedisRuleStore
from .metrics import ScopeMetrics
from .pattern_list import UrlMatchPatternList
from .patterns import (
    ALLOWED_PROTOCOLS,
    MATCH_ALL_URLS,
    MatchPatternRecord,
    UrlMatchPattern,
    compile_pattern,
    glob_to_regex,
    split_pattern,
)
from .property import Property
from .scope import ScopeConfig, ScopeMatcher
from .serializers import pack_rules, unpack_rules
from .stats import MatchStats
from .url import Url, UrlParseError

__all__ = [
    "ALLOWED_PROTOCOLS",
    "MATCH_ALL_URLS",
    "MatchPatternRecord",
    "UrlMatchPattern",
    "UrlMatchPatternList",
    "compile_pattern",
    "glob_to_regex",
    "split_pattern",
    "Property",
    "Url",
    "UrlParseError",
    "ScopeConfig",
    "ScopeMatcher",
    "ScopeMetrics",
    "MatchStats",
    "pack_rules",
    "unpack_rules",
    "RuleStore",
    "MemoryRuleStore",
    "RedisRuleStore",
]

__version__ = "1.0.0"
