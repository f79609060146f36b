from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .backends.base import RuleStore
from .metrics import ScopeMetrics
from .pattern_list import UrlMatchPatternList
from .patterns import UrlMatchPattern
from .serializers import COMPRESSORS, pack_rules, unpack_rules
from .stats import MatchStats

logger = logging.getLogger(__name__)


@dataclass
class ScopeConfig:
    namespace: str = os.environ.get("MATCHPATTERN_NAMESPACE", "default")
    enable_logging: bool = os.environ.get("MATCHPATTERN_LOGGING", "false").lower() == "true"
    # With no include rules, everything not excluded is in scope
    match_when_empty: bool = os.environ.get("MATCHPATTERN_MATCH_WHEN_EMPTY", "true").lower() == "true"

    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    compression: str = "gzip"  # gzip, none
    store_ttl_seconds: int = int(os.environ.get("MATCHPATTERN_STORE_TTL", "0"))  # 0 = no expiry

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("namespace must not be empty")

        if self.compression not in COMPRESSORS:
            valid = ", ".join(COMPRESSORS.keys())
            raise ValueError(f"Invalid compression '{self.compression}'. Valid options: {valid}")

        if self.store_ttl_seconds < 0:
            raise ValueError(f"store_ttl_seconds must be >= 0, got {self.store_ttl_seconds}")


class ScopeMatcher:
    """
    Decides whether URLs belong to a scope made of include and exclude match patterns.

    Logic:
    1. If the URL matches any exclude pattern -> out of scope
    2. If there are no include patterns -> config.match_when_empty
    3. If the URL matches any include pattern -> in scope
    4. Otherwise -> out of scope

    Invalid patterns never raise; they simply match nothing.
    """

    def __init__(self, config: Optional[ScopeConfig] = None) -> None:
        self.config = config or ScopeConfig()
        self.include = UrlMatchPatternList(self.config.include_patterns)
        self.exclude = UrlMatchPatternList(self.config.exclude_patterns)
        self.stats = MatchStats()
        self.metrics = ScopeMetrics(namespace=self.config.namespace)

        if self.config.enable_logging:
            invalid = [
                str(p) for p in [*self.include, *self.exclude]
                if not p.is_valid() and str(p) != UrlMatchPattern.MATCH_ALL_URLS
            ]
            if invalid:
                logger.warning(f"Scope {self.config.namespace} has invalid patterns that match nothing: {invalid}")

    def get_stats(self) -> MatchStats:
        """Get evaluation statistics."""
        return self.stats

    def matching_rule(self, url: str) -> Optional[UrlMatchPattern]:
        """
        Return the include pattern that puts the URL in scope.

        Returns None when the URL is excluded, matches no include pattern, or
        is in scope only because there are no include patterns.
        """
        if self.exclude.test(url):
            return None
        return self.include.find(url)

    def in_scope(self, url: str) -> bool:
        """
        Check whether a URL is in scope.

        Args:
            url: URL string to check

        Returns:
            True if the URL is in scope, False otherwise
        """
        start_time = time.time()

        excluded_by = self.exclude.find(url)
        if excluded_by is not None:
            result = ScopeMetrics.EXCLUDED
        elif len(self.include) == 0:
            result = ScopeMetrics.IN_SCOPE if self.config.match_when_empty else ScopeMetrics.OUT_OF_SCOPE
        elif self.include.test(url):
            result = ScopeMetrics.IN_SCOPE
        else:
            result = ScopeMetrics.OUT_OF_SCOPE

        if result == ScopeMetrics.IN_SCOPE:
            self.stats.increment_in_scope()
        elif result == ScopeMetrics.EXCLUDED:
            self.stats.increment_excluded()
        else:
            self.stats.increment_out_of_scope()
        self.metrics.record(result)
        self.metrics.observe_latency(time.time() - start_time)

        if self.config.enable_logging:
            if excluded_by is not None:
                logger.debug(f"Scope {self.config.namespace}: {url} excluded by {excluded_by}")
            else:
                logger.debug(f"Scope {self.config.namespace}: {url} -> {result}")

        return result == ScopeMetrics.IN_SCOPE

    def filter(self, urls: List[str]) -> List[str]:
        """Keep only the URLs that are in scope, preserving order."""
        return [url for url in urls if self.in_scope(url)]

    def to_json(self) -> Dict[str, Any]:
        return {
            "namespace": self.config.namespace,
            "include": self.include.to_json(),
            "exclude": self.exclude.to_json(),
        }

    def save(self, store: RuleStore, name: Optional[str] = None) -> str:
        """
        Persist the rule sets to a store.

        Args:
            store: Rule store to write to
            name: Key to store under. Defaults to the scope namespace.

        Returns:
            The key used
        """
        key = name or self.config.namespace
        blob = pack_rules(self.include, self.exclude, compression=self.config.compression)
        store.set(key, blob, self.config.store_ttl_seconds)
        if self.config.enable_logging:
            logger.info(
                f"Saved scope {key} ({len(self.include)} include, {len(self.exclude)} exclude, {len(blob)} bytes)"
            )
        return key

    @classmethod
    def load(
        cls,
        store: RuleStore,
        name: str,
        config: Optional[ScopeConfig] = None,
    ) -> Optional["ScopeMatcher"]:
        """
        Build a scope from rule sets previously saved to a store.

        The stored patterns replace include_patterns and exclude_patterns of
        the given config; the other settings are kept.

        Returns:
            The scope, or None if nothing is stored under the name
        """
        config = config or ScopeConfig(namespace=name)
        blob = store.get(name)
        if blob is None:
            if config.enable_logging:
                logger.warning(f"No rule set stored under {name}")
            return None

        include, exclude = unpack_rules(blob)
        config = replace(
            config,
            include_patterns=[str(p) for p in include],
            exclude_patterns=[str(p) for p in exclude],
        )
        if config.enable_logging:
            logger.info(f"Loaded scope {name} ({len(include)} include, {len(exclude)} exclude)")
        return cls(config)
