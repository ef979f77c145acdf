"""In-process TTL cache for Larder.

This module provides a key/value store whose entries expire after a
per-entry time-to-live. It memoizes expensive remote calls (recipe
lookups, stock queries) for the lifetime of the process and is never
persisted.

All durations are milliseconds. The clock is injectable so expiry can be
tested without sleeping.
"""

from __future__ import annotations

import fnmatch
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, Field

from larder.shared.constants import CacheConfig
from larder.shared.errors import create_cache_error

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Return a monotonic timestamp in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry:
    """A single cached value with its insertion time and time-to-live.

    Attributes:
        key: Cache key, unique within the store.
        value: Cached payload, opaque to the store.
        stored_at: Insertion timestamp in milliseconds.
        ttl_ms: Time-to-live in milliseconds.
    """

    key: str
    value: Any
    stored_at: float
    ttl_ms: float

    def is_expired(self, now: float) -> bool:
        """Return True when the entry is stale at ``now``.

        An entry is valid while ``now - stored_at <= ttl_ms``. A
        non-positive TTL is stale from the first read onwards.
        """
        if self.ttl_ms <= 0:
            return True
        return now - self.stored_at > self.ttl_ms


class CacheStats(BaseModel):
    """Diagnostic snapshot of a cache.

    ``size`` counts every held entry, including expired entries that
    have not been swept yet. ``entries`` carries no ordering guarantee.
    """

    size: int = Field(..., ge=0, description="Number of held entries")
    entries: list[str] = Field(default_factory=list, description="Held keys")
    hits: int = Field(default=0, ge=0, description="Lookups answered from the cache")
    misses: int = Field(default=0, ge=0, description="Lookups that found nothing valid")

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that were hits (0.0 when nothing was looked up)."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TTLCache:
    """Key/value store with per-entry expiry.

    Lookups never return expired values; an expired entry found by
    :meth:`get` is evicted on the spot. Everything else that expired stays
    in memory until :meth:`cleanup` runs, which is normally driven by a
    :class:`~larder.services.sweeper.CacheSweeper`.

    The store does not lock: every method runs to completion without
    suspending, so asyncio tasks sharing it never observe a half-applied
    mutation.

    Args:
        default_ttl_ms: TTL applied when :meth:`set` gets no explicit TTL.
        clock: Zero-argument callable returning the current time in ms.

    Example:
        >>> cache = TTLCache(default_ttl_ms=60_000)
        >>> cache.set("recipes:42", {"name": "Ratatouille"})
        >>> cache.get("recipes:42")
        {'name': 'Ratatouille'}
    """

    def __init__(
        self,
        default_ttl_ms: float = CacheConfig.DEFAULT_TTL_MS,
        clock: Clock | None = None,
    ) -> None:
        self.default_ttl_ms = default_ttl_ms
        self._clock: Clock = clock or monotonic_ms
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the value for ``key``, or None if unknown or expired.

        Args:
            key: Cache key

        Returns:
            The cached value, or None on a miss
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            logger.debug("Evicted expired cache entry on read: %s", key)
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        Args:
            key: Cache key
            value: Value to store, not validated
            ttl_ms: Time-to-live in ms; None uses the default. Values <= 0
                are accepted and expire immediately.

        Raises:
            CacheError: If key is not a string
        """
        if not isinstance(key, str):
            raise create_cache_error(
                message=f"Cache keys must be strings, got {type(key).__name__}",
                operation="cache_set",
            )

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_ms=self.default_ttl_ms if ttl_ms is None else ttl_ms,
        )

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def cleanup(self) -> int:
        """Evict every expired entry.

        Valid entries are untouched, so calling this again without an
        intervening write changes nothing.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Cache cleanup evicted %d expired entries", len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        """Return size, held keys and hit/miss counters."""
        return CacheStats(
            size=len(self._entries),
            entries=list(self._entries),
            hits=self._hits,
            misses=self._misses,
        )

    def contains(self, key: str) -> bool:
        """Return True if ``key`` holds a valid entry.

        Unlike :meth:`get` this does not count towards hits or misses and
        does not evict.
        """
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern such as ``"recipes:*"``.

        Args:
            pattern: fnmatch-style pattern, matched case-sensitively

        Returns:
            Number of entries removed
        """
        matched = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            del self._entries[key]

        logger.debug("Invalidated %d cache entries matching %r", len(matched), pattern)
        return len(matched)

    def get_many(self, keys: Iterable[str]) -> list[Any | None]:
        """Look up several keys; misses come back as None in position."""
        return [self.get(key) for key in keys]

    def set_many(self, items: Mapping[str, Any], ttl_ms: float | None = None) -> None:
        """Store several values with one shared TTL."""
        for key, value in items.items():
            self.set(key, value, ttl_ms)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __len__(self) -> int:
        return len(self._entries)


_default_cache: TTLCache | None = None


def get_default_cache() -> TTLCache:
    """Return the process-wide cache, creating it from settings on first use."""
    global _default_cache  # pylint: disable=global-statement
    if _default_cache is None:
        from larder.config import get_config

        settings = get_config()
        _default_cache = TTLCache(default_ttl_ms=settings.cache.default_ttl_ms)
    return _default_cache


def set_default_cache(cache: TTLCache | None) -> None:
    """Replace (or with None, drop) the process-wide cache."""
    global _default_cache  # pylint: disable=global-statement
    _default_cache = cache


__all__ = [
    "CacheEntry",
    "CacheStats",
    "Clock",
    "TTLCache",
    "get_default_cache",
    "monotonic_ms",
    "set_default_cache",
]
