# -*- coding: utf-8 -*-
"""Unit tests for TTLCache.

Covers cache-hit / cache-miss semantics, per-entry expiry, removal and
stats tracking.
"""

# Standard
from types import SimpleNamespace

# Third-Party
import pytest

# First-Party
from mcphub.cache.ttl_cache import TTLCache


@pytest.fixture()
def clock(monkeypatch):
    """Controllable monotonic clock for the cache module."""
    now = SimpleNamespace(value=1000.0)
    monkeypatch.setattr("mcphub.cache.ttl_cache.time", SimpleNamespace(monotonic=lambda: now.value))
    return now


@pytest.fixture()
def cache():
    return TTLCache()


def test_miss_then_hit(cache):
    assert cache.get("k") is None
    cache.set("k", [1, 2], ttl_ms=1000)
    assert cache.get("k") == [1, 2]


def test_falsy_values_are_cached(cache):
    cache.set("empty", [], ttl_ms=1000)
    assert cache.get("empty") == []
    assert cache.has("empty")


def test_entry_expires_after_ttl(cache, clock):
    cache.set("k", "v", ttl_ms=500)

    clock.value += 0.499
    assert cache.get("k") == "v"

    clock.value += 0.002
    assert cache.get("k") is None
    assert cache.stats()["cached_keys"] == []


def test_each_entry_has_own_ttl(cache, clock):
    cache.set("short", 1, ttl_ms=100)
    cache.set("long", 2, ttl_ms=10_000)

    clock.value += 1
    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_set_overwrites_and_resets_ttl(cache, clock):
    cache.set("k", "old", ttl_ms=1000)
    clock.value += 0.9
    cache.set("k", "new", ttl_ms=1000)
    clock.value += 0.9
    assert cache.get("k") == "new"


@pytest.mark.parametrize("ttl_ms", [0, -1])
def test_non_positive_ttl_rejected(cache, ttl_ms):
    with pytest.raises(ValueError, match="ttl_ms must be positive"):
        cache.set("k", 1, ttl_ms=ttl_ms)


def test_remove_and_clear(cache):
    cache.set("a", 1, ttl_ms=1000)
    cache.set("b", 2, ttl_ms=1000)

    cache.remove("a")
    cache.remove("missing")
    assert not cache.has("a")
    assert cache.has("b")

    cache.clear()
    assert cache.stats()["cached_keys"] == []


def test_stats_track_hits_and_misses(cache):
    cache.get("k")
    cache.set("k", 1, ttl_ms=1000)
    cache.get("k")
    cache.get("k")

    stats = cache.stats()
    assert stats["hit_count"] == 2
    assert stats["miss_count"] == 1
    assert stats["hit_rate"] == pytest.approx(2 / 3)
