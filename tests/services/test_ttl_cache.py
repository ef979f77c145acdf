"""Tests for the in-process TTL cache."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from larder.services.ttl_cache import CacheEntry, CacheStats, TTLCache, get_default_cache, set_default_cache
from larder.shared.errors import CacheError, ErrorCode
from conftest import FakeClock


class TestCacheEntry:
    """Expiry rule of a single entry."""

    def test_valid_up_to_and_including_ttl(self) -> None:
        entry = CacheEntry(key="k", value=1, stored_at=0, ttl_ms=100)

        assert not entry.is_expired(0)
        assert not entry.is_expired(100)
        assert entry.is_expired(101)

    @pytest.mark.parametrize("ttl_ms", [0, -5])
    def test_non_positive_ttl_is_always_expired(self, ttl_ms: int) -> None:
        entry = CacheEntry(key="k", value=1, stored_at=0, ttl_ms=ttl_ms)

        assert entry.is_expired(0)


class TestGetSet:
    """Basic store and lookup behaviour."""

    def test_get_unknown_key_returns_none(self, cache: TTLCache) -> None:
        assert cache.get("missing") is None

    def test_set_then_get(self, cache: TTLCache) -> None:
        cache.set("recipes:1", {"name": "Soup"})

        assert cache.get("recipes:1") == {"name": "Soup"}

    def test_set_overwrites_and_restarts_ttl(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "old", ttl_ms=100)
        clock.advance(90)
        cache.set("k", "new", ttl_ms=100)
        clock.advance(90)

        assert cache.get("k") == "new"

    def test_default_ttl_applies_when_none_given(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "v")

        clock.advance(1000)
        assert cache.get("k") == "v"

        clock.advance(1)
        assert cache.get("k") is None

    def test_expired_entry_is_evicted_on_read(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "v", ttl_ms=10)
        clock.advance(11)

        assert len(cache) == 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_zero_ttl_is_stale_on_first_read(self, cache: TTLCache) -> None:
        cache.set("k", "v", ttl_ms=0)

        assert cache.get("k") is None

    def test_falsy_values_are_returned(self, cache: TTLCache) -> None:
        cache.set("zero", 0)
        cache.set("empty", "")

        assert cache.get("zero") == 0
        assert cache.get("empty") == ""

    def test_non_string_key_raises_cache_error(self, cache: TTLCache) -> None:
        with pytest.raises(CacheError) as exc_info:
            cache.set(42, "v")  # type: ignore[arg-type]

        assert exc_info.value.code == ErrorCode.CACHE_ERROR

    def test_delete_and_clear(self, cache: TTLCache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        cache.delete("never-there")
        assert cache.get("a") is None
        assert cache.get("b") == 2

        cache.clear()
        assert len(cache) == 0


class TestTTLProperty:
    """For any TTL and elapsed time, a read succeeds exactly while elapsed <= ttl."""

    @given(
        ttl_ms=st.integers(min_value=1, max_value=100_000),
        elapsed_ms=st.integers(min_value=0, max_value=200_000),
    )
    def test_value_visible_iff_within_ttl(self, ttl_ms: int, elapsed_ms: int) -> None:
        clock = FakeClock()
        cache = TTLCache(clock=clock)
        cache.set("k", "v", ttl_ms=ttl_ms)

        clock.advance(elapsed_ms)

        expected = "v" if elapsed_ms <= ttl_ms else None
        assert cache.get("k") == expected


class TestCleanup:
    """Bulk eviction of expired entries."""

    def test_cleanup_removes_only_expired(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("short", 1, ttl_ms=10)
        cache.set("long", 2, ttl_ms=10_000)
        clock.advance(50)

        evicted = cache.cleanup()

        assert evicted == 1
        assert cache.get_stats().entries == ["long"]

    def test_cleanup_is_idempotent(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("a", 1, ttl_ms=10)
        cache.set("b", 2, ttl_ms=10_000)
        clock.advance(50)

        cache.cleanup()
        first = cache.get_stats()
        assert cache.cleanup() == 0
        second = cache.get_stats()

        assert first.size == second.size
        assert sorted(first.entries) == sorted(second.entries)

    def test_cleanup_on_empty_cache(self, cache: TTLCache) -> None:
        assert cache.cleanup() == 0


class TestStats:
    """get_stats reflects every held entry, expired ones included."""

    def test_stats_after_sets_and_deletes(self, cache: TTLCache) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, key.upper())
        cache.delete("b")

        stats = cache.get_stats()

        assert isinstance(stats, CacheStats)
        assert stats.size == 2
        assert sorted(stats.entries) == ["a", "c"]

    def test_stats_include_unswept_expired_entries(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("stale", 1, ttl_ms=1)
        clock.advance(5)

        assert cache.get_stats().size == 1

    def test_hit_and_miss_counters(self, cache: TTLCache) -> None:
        cache.set("k", "v")
        cache.get("k")
        cache.get("k")
        cache.get("nope")

        stats = cache.get_stats()

        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)

    def test_hit_rate_without_lookups(self, cache: TTLCache) -> None:
        assert cache.get_stats().hit_rate == 0.0


class TestExtendedOperations:
    """contains, pattern invalidation and bulk helpers."""

    def test_contains_does_not_touch_counters(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "v", ttl_ms=10)

        assert cache.contains("k")
        assert "k" in cache
        clock.advance(11)
        assert not cache.contains("k")
        assert 42 not in cache

        stats = cache.get_stats()
        assert (stats.hits, stats.misses) == (0, 0)
        assert stats.size == 1

    def test_invalidate_pattern(self, cache: TTLCache) -> None:
        cache.set_many({"recipes:1": "a", "recipes:2": "b", "stock:1": "c"})

        removed = cache.invalidate_pattern("recipes:*")

        assert removed == 2
        assert cache.get_stats().entries == ["stock:1"]

    def test_invalidate_pattern_is_case_sensitive(self, cache: TTLCache) -> None:
        cache.set("Recipes:1", "a")

        assert cache.invalidate_pattern("recipes:*") == 0

    def test_get_many_keeps_positions(self, cache: TTLCache) -> None:
        cache.set_many({"a": 1, "c": 3}, ttl_ms=500)

        assert cache.get_many(["a", "b", "c"]) == [1, None, 3]

    def test_set_many_shares_one_ttl(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set_many({"flour": 1, "sugar": 2}, ttl_ms=300)
        cache.set("salt", 3)

        clock.advance(301)

        assert cache.get_many(["flour", "sugar", "salt"]) == [None, None, 3]

    def test_set_many_defaults_to_cache_ttl(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set_many({"flour": 1})

        clock.advance(1000)
        assert cache.get("flour") == 1
        clock.advance(1)
        assert cache.get("flour") is None

    def test_set_many_empty_is_a_no_op(self, cache: TTLCache) -> None:
        cache.set_many({})

        assert len(cache) == 0


class TestDefaultCache:
    """Process-wide cache used when none is passed explicitly."""

    def test_default_cache_is_created_once(self) -> None:
        first = get_default_cache()

        assert get_default_cache() is first

    def test_default_cache_reads_ttl_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LARDER_CACHE__DEFAULT_TTL_MS", "1234")

        assert get_default_cache().default_ttl_ms == 1234

    def test_set_default_cache_replaces_instance(self, cache: TTLCache) -> None:
        set_default_cache(cache)

        assert get_default_cache() is cache
