from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import msgpack
import pytest
import redis
from prometheus_client import REGISTRY

from matchpattern import (
    MatchStats,
    MemoryRuleStore,
    RedisRuleStore,
    ScopeConfig,
    ScopeMatcher,
    ScopeMetrics,
    pack_rules,
    unpack_rules,
)


@pytest.fixture
def store() -> MemoryRuleStore:
    return MemoryRuleStore()


@pytest.fixture
def scope() -> ScopeMatcher:
    return ScopeMatcher(ScopeConfig(
        namespace="t",
        include_patterns=["*://*.example.com/*", "https://api.test.io/v1/*"],
        exclude_patterns=["*://admin.example.com/*"],
    ))


# ==================== ScopeMatcher ====================

def test_include_and_exclude(scope: ScopeMatcher) -> None:
    assert scope.in_scope("https://www.example.com/page")
    assert scope.in_scope("http://example.com/")
    assert scope.in_scope("https://api.test.io/v1/users")
    assert not scope.in_scope("https://api.test.io/v2/users")
    assert not scope.in_scope("https://other.org/")


def test_exclude_takes_precedence(scope: ScopeMatcher) -> None:
    assert not scope.in_scope("https://admin.example.com/users")
    assert scope.matching_rule("https://admin.example.com/users") is None


def test_matching_rule(scope: ScopeMatcher) -> None:
    rule = scope.matching_rule("https://api.test.io/v1/users")
    assert str(rule) == "https://api.test.io/v1/*"
    assert scope.matching_rule("https://other.org/") is None


def test_no_include_patterns_matches_when_empty() -> None:
    scope = ScopeMatcher(ScopeConfig(namespace="t", exclude_patterns=["*://*/private/*"]))
    assert scope.in_scope("https://anything.org/public")
    assert not scope.in_scope("https://anything.org/private/x")


def test_no_include_patterns_opt_in() -> None:
    scope = ScopeMatcher(ScopeConfig(namespace="t", match_when_empty=False))
    assert not scope.in_scope("https://anything.org/public")


def test_invalid_patterns_match_nothing() -> None:
    scope = ScopeMatcher(ScopeConfig(
        namespace="t",
        include_patterns=["not a pattern"],
        exclude_patterns=["also bogus"],
        enable_logging=True,
    ))
    assert not scope.in_scope("https://example.com/")
    assert not scope.in_scope("garbage")


def test_malformed_url_is_out_of_scope(scope: ScopeMatcher) -> None:
    assert not scope.in_scope("not a url at all")
    assert not scope.in_scope("")


def test_filter_keeps_order(scope: ScopeMatcher) -> None:
    urls = [
        "https://b.example.com/",
        "https://other.org/",
        "https://a.example.com/",
        "https://admin.example.com/",
    ]
    assert scope.filter(urls) == ["https://b.example.com/", "https://a.example.com/"]


def test_scope_statistics(scope: ScopeMatcher) -> None:
    stats = scope.get_stats()
    assert stats.total_evaluations == 0
    assert stats.match_rate == 0.0

    scope.in_scope("https://www.example.com/")
    scope.in_scope("https://other.org/")
    scope.in_scope("https://admin.example.com/")
    scope.in_scope("https://example.com/")

    assert stats.in_scope == 2
    assert stats.out_of_scope == 1
    assert stats.excluded == 1
    assert stats.total_evaluations == 4
    assert stats.match_rate == 0.5

    data = stats.to_dict()
    assert data["in_scope"] == 2
    assert data["match_rate"] == 0.5

    stats.reset()
    assert stats.total_evaluations == 0


def test_stats_thread_safety() -> None:
    stats = MatchStats()

    def work() -> None:
        for _ in range(1000):
            stats.increment_in_scope()

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert stats.in_scope == 4000
    assert stats.total_evaluations == 4000


def test_metrics_calls(scope: ScopeMatcher) -> None:
    scope.metrics = MagicMock()

    scope.in_scope("https://www.example.com/")
    scope.metrics.record.assert_called_once_with(ScopeMetrics.IN_SCOPE)
    scope.metrics.observe_latency.assert_called_once()

    scope.in_scope("https://admin.example.com/")
    scope.metrics.record.assert_called_with(ScopeMetrics.EXCLUDED)


def test_metrics_are_exported() -> None:
    labels = {"namespace": "metrics-test", "result": "out_of_scope"}
    before = REGISTRY.get_sample_value("matchpattern_evaluations_total", labels) or 0.0

    scope = ScopeMatcher(ScopeConfig(namespace="metrics-test", include_patterns=["https://a.com/*"]))
    scope.in_scope("https://b.com/")
    scope.in_scope("https://c.com/")

    after = REGISTRY.get_sample_value("matchpattern_evaluations_total", labels)
    assert after == before + 2


def test_to_json(scope: ScopeMatcher) -> None:
    data = scope.to_json()
    assert data["namespace"] == "t"
    assert data["include"][0] == {"pattern": "*://*.example.com/*"}
    assert data["exclude"] == [{"pattern": "*://admin.example.com/*"}]


# ==================== Configuration ====================

def test_config_rejects_unknown_compression() -> None:
    with pytest.raises(ValueError, match="Invalid compression"):
        ScopeConfig(compression="lz4")


def test_config_rejects_negative_ttl() -> None:
    with pytest.raises(ValueError):
        ScopeConfig(store_ttl_seconds=-1)


def test_config_rejects_empty_namespace() -> None:
    with pytest.raises(ValueError):
        ScopeConfig(namespace="")


# ==================== Serialization ====================

def test_pack_unpack_keeps_raw_patterns() -> None:
    include = ["https://*.example.com/*", "not a pattern", "<all_urls>"]
    exclude = ["*://admin.example.com/*"]

    for compression in ("gzip", "none"):
        inc, exc = unpack_rules(pack_rules(include, exclude, compression=compression))
        assert [str(p) for p in inc] == include
        assert [str(p) for p in exc] == exclude
        assert not inc.members[1].is_valid()


def test_pack_rejects_unknown_compression() -> None:
    with pytest.raises(ValueError):
        pack_rules(["https://a.com/*"], compression="zstd")


def test_unpack_rejects_unknown_version() -> None:
    blob = msgpack.packb({"version": 99, "compression": "none", "rules_compressed": b""}, use_bin_type=True)
    with pytest.raises(ValueError, match="version"):
        unpack_rules(blob)


# ==================== Rule stores ====================

def test_save_and_load(scope: ScopeMatcher, store: MemoryRuleStore) -> None:
    key = scope.save(store)
    assert key == "t"
    assert store.keys() == ["t"]

    loaded = ScopeMatcher.load(store, "t")
    assert loaded is not None
    assert loaded.to_json() == scope.to_json()
    assert loaded.in_scope("https://www.example.com/")
    assert not loaded.in_scope("https://admin.example.com/")


def test_load_keeps_other_config(scope: ScopeMatcher, store: MemoryRuleStore) -> None:
    scope.save(store, name="shared")
    config = ScopeConfig(namespace="other", match_when_empty=False)

    loaded = ScopeMatcher.load(store, "shared", config)
    assert loaded is not None
    assert loaded.config.namespace == "other"
    assert loaded.config.match_when_empty is False
    assert config.include_patterns == []


def test_load_missing_returns_none(store: MemoryRuleStore) -> None:
    assert ScopeMatcher.load(store, "nothing-here") is None


def test_memory_store_ttl(store: MemoryRuleStore) -> None:
    store.set("forever", b"a")
    store.set("short", b"b", ttl_seconds=10)
    assert store.get("short") == b"b"

    with patch("matchpattern.backends.memory.time.time", return_value=10**12):
        assert store.get("short") is None
        assert store.get("forever") == b"a"

    store.delete("forever")
    assert store.get("forever") is None
    assert store.health_check() is True


def test_redis_store() -> None:
    with patch("matchpattern.backends.redis.redis.from_url") as from_url:
        client = MagicMock()
        from_url.return_value = client
        client.get.return_value = b"blob"
        client.keys.return_value = [b"matchpattern:a", b"matchpattern:b"]

        rstore = RedisRuleStore(redis_url="redis://localhost:6379/0", key_prefix="matchpattern:")

        rstore.set("a", b"blob")
        client.set.assert_called_with("matchpattern:a", b"blob", ex=None)
        rstore.set("a", b"blob", ttl_seconds=30)
        client.set.assert_called_with("matchpattern:a", b"blob", ex=30)

        assert rstore.get("a") == b"blob"
        client.get.assert_called_with("matchpattern:a")
        assert rstore.keys() == ["a", "b"]

        rstore.delete("a")
        client.delete.assert_called_with("matchpattern:a")


def test_redis_store_errors_degrade() -> None:
    with patch("matchpattern.backends.redis.redis.from_url") as from_url:
        client = MagicMock()
        from_url.return_value = client
        rstore = RedisRuleStore()

        client.ping.return_value = True
        assert rstore.health_check() is True

        client.ping.side_effect = redis.ConnectionError("Down")
        assert rstore.health_check() is False

        client.get.side_effect = redis.ConnectionError("Down")
        assert rstore.get("a") is None
        assert ScopeMatcher.load(rstore, "a") is None
