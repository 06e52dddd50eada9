"""
Tests for the in-memory TTL cache.

Tests:
- Hits, misses and lazy expiry
- Per-key TTL overriding the default
- Bounded size: expired entries go first, then least recently used
- Prefix invalidation and sweeping
- Cache key building
"""

import pytest

from app.services.cache import TTLCache, make_cache_key
from tests.conftest import FakeTimer


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def small_cache(timer: FakeTimer) -> TTLCache:
    return TTLCache(max_entries=3, default_ttl=60, timer=timer)


class TestGetSet:
    """Tests for TTLCache.get / TTLCache.set"""

    def test_miss_on_unknown_key(self, small_cache: TTLCache):
        assert small_cache.get("nope") is None
        assert small_cache.stats()["misses"] == 1

    def test_hit_returns_stored_value(self, small_cache: TTLCache):
        payload = {"items": [1, 2, 3]}
        small_cache.set("k", payload)

        assert small_cache.get("k") is payload
        assert small_cache.stats()["hits"] == 1

    def test_entry_expires_after_default_ttl(self, small_cache: TTLCache, timer: FakeTimer):
        small_cache.set("k", "v")

        timer.advance(59)
        assert small_cache.get("k") == "v"

        timer.advance(1)
        assert small_cache.get("k") is None
        assert "k" not in small_cache

    def test_explicit_ttl_overrides_default(self, small_cache: TTLCache, timer: FakeTimer):
        small_cache.set("short", "v", ttl=5)
        small_cache.set("long", "v", ttl=600)

        timer.advance(100)

        assert small_cache.get("short") is None
        assert small_cache.get("long") == "v"

    def test_set_replaces_value_and_ttl(self, small_cache: TTLCache, timer: FakeTimer):
        small_cache.set("k", "old", ttl=5)
        small_cache.set("k", "new", ttl=50)

        timer.advance(10)

        assert small_cache.get("k") == "new"
        assert len(small_cache) == 1

    def test_membership_check_leaves_stats_and_order(
        self, small_cache: TTLCache, timer: FakeTimer
    ):
        small_cache.set("a", None)
        small_cache.set("b", 2)
        small_cache.set("c", 3, ttl=1)

        assert "a" in small_cache
        assert "missing" not in small_cache
        timer.advance(2)
        assert "c" not in small_cache

        stats = small_cache.stats()
        assert stats["hits"] == 0
        assert stats["misses"] == 0

        # "a" is still least recently used
        small_cache.set("d", 4)
        small_cache.set("e", 5)
        assert "a" not in small_cache
        assert "b" in small_cache

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            TTLCache(max_entries=0)


class TestBoundedSize:
    """Tests for eviction when the cache is full"""

    def test_evicts_least_recently_used(self, small_cache: TTLCache):
        small_cache.set("a", 1)
        small_cache.set("b", 2)
        small_cache.set("c", 3)

        # Touch "a" so "b" becomes the oldest
        small_cache.get("a")
        small_cache.set("d", 4)

        assert len(small_cache) == 3
        assert small_cache.get("b") is None
        assert small_cache.get("a") == 1
        assert small_cache.get("d") == 4
        assert small_cache.stats()["evictions"] == 1

    def test_expired_entries_are_removed_before_evicting(
        self, small_cache: TTLCache, timer: FakeTimer
    ):
        small_cache.set("stale", 1, ttl=1)
        small_cache.set("b", 2)
        small_cache.set("c", 3)

        timer.advance(5)
        small_cache.set("d", 4)

        assert small_cache.get("b") == 2
        assert small_cache.get("c") == 3
        assert small_cache.get("d") == 4
        assert small_cache.stats()["evictions"] == 0


class TestInvalidation:
    """Tests for delete, delete_prefix, clear and sweep"""

    def test_delete(self, small_cache: TTLCache):
        small_cache.set("k", 1)

        assert small_cache.delete("k") is True
        assert small_cache.delete("k") is False
        assert small_cache.get("k") is None

    def test_delete_prefix(self):
        cache = TTLCache(max_entries=10)
        cache.set("trending:7:10", 1)
        cache.set("trending:30:5", 2)
        cache.set("categories", 3)

        assert cache.delete_prefix("trending:") == 2
        assert cache.get("categories") == 3
        assert len(cache) == 1

    def test_clear(self, small_cache: TTLCache):
        small_cache.set("a", 1)
        small_cache.set("b", 2)

        small_cache.clear()

        assert len(small_cache) == 0

    def test_sweep_removes_only_expired(self, small_cache: TTLCache, timer: FakeTimer):
        small_cache.set("a", 1, ttl=1)
        small_cache.set("b", 2, ttl=1)
        small_cache.set("c", 3, ttl=100)

        timer.advance(2)

        assert small_cache.sweep() == 2
        assert len(small_cache) == 1


class TestMakeCacheKey:
    """Tests for make_cache_key"""

    def test_positional_parts(self):
        assert make_cache_key("trending", 7, 10) == "trending:7:10"

    def test_prefix_only(self):
        assert make_cache_key("categories") == "categories"

    def test_keyword_order_does_not_matter(self):
        assert make_cache_key("feed", page=1, limit=20) == make_cache_key(
            "feed", limit=20, page=1
        )
