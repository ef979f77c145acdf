"""Memoization of asynchronous producers on top of the TTL cache.

``with_cache`` answers from the cache when it can and otherwise awaits
the producer, stores its result and returns it. Producer failures are
propagated unchanged and never cached, so the next call tries again.

By default two concurrent misses on the same key both run the producer.
A :class:`CacheMemoizer` created with ``single_flight=True`` makes them
share one in-flight call instead.
"""

from __future__ import annotations

import asyncio
import functools
import hashlib
import logging
from typing import Any, Awaitable, Callable, TypeVar

import orjson

from larder.services.ttl_cache import TTLCache, get_default_cache
from larder.shared.constants import CacheConfig
from larder.shared.errors import ErrorCode, create_cache_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
Producer = Callable[[], Awaitable[T]]
AsyncFunc = TypeVar("AsyncFunc", bound=Callable[..., Awaitable[Any]])


def make_cache_key(
    *parts: Any,
    separator: str = CacheConfig.KEY_SEPARATOR,
    max_length: int = CacheConfig.MAX_KEY_LENGTH,
) -> str:
    """Join key parts into a namespaced cache key.

    Keys longer than ``max_length`` keep their first part for readability
    and replace the rest with a SHA-256 digest.

    Args:
        *parts: Key components, e.g. ("recipes", recipe_id)
        separator: Joining string (default ":")
        max_length: Maximum key length before hashing

    Returns:
        Cache key string

    Raises:
        CacheError: If no non-empty part is given

    Example:
        >>> make_cache_key("stock", "kitchen-1", 42)
        'stock:kitchen-1:42'
    """
    clean_parts = [str(p) for p in parts if p is not None and str(p) != ""]
    if not clean_parts:
        raise create_cache_error(
            message="At least one non-empty cache key part is required",
            operation="make_cache_key",
        )

    key = separator.join(clean_parts)
    if len(key) > max_length:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[: CacheConfig.KEY_HASH_LENGTH]
        key = f"{clean_parts[0][:50]}{separator}hash_{digest}"

    return key


def serialize_arguments(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """Serialize call arguments deterministically for use in a cache key.

    Keyword arguments are sorted; values orjson cannot encode natively are
    converted with ``str``.

    Raises:
        CacheError: If the arguments cannot be serialized
    """
    try:
        payload = [list(args), kwargs] if kwargs else list(args)
        return orjson.dumps(
            payload,
            option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS,
            default=str,
        ).decode("utf-8")
    except (orjson.JSONEncodeError, TypeError) as e:
        raise create_cache_error(
            message=f"Cannot serialize arguments for cache key: {e!s}",
            operation="serialize_arguments",
            code=ErrorCode.CACHE_SERIALIZATION_ERROR,
            original_error=e,
        ) from e


class CacheMemoizer:
    """Memoizes producer results in a :class:`TTLCache`.

    A ``None`` result is indistinguishable from a miss and is therefore
    recomputed on every call.

    Args:
        cache: Cache to use; None means the process-wide default cache
        single_flight: Share one producer call between concurrent misses
    """

    def __init__(self, cache: TTLCache | None = None, *, single_flight: bool = False) -> None:
        self._cache = cache
        self.single_flight = single_flight
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    @property
    def cache(self) -> TTLCache:
        if self._cache is None:
            return get_default_cache()
        return self._cache

    @property
    def in_flight(self) -> int:
        """Number of keys with a producer currently running (single-flight only)."""
        return len(self._in_flight)

    async def get_or_set(self, key: str, producer: Producer[T], ttl_ms: float | None = None) -> T:
        """Return the cached value for ``key`` or produce, store and return it.

        Args:
            key: Cache key
            producer: Zero-argument coroutine function computing the value
            ttl_ms: TTL for a freshly produced value; None uses the cache default

        Returns:
            Cached or freshly produced value

        Raises:
            Exception: Whatever the producer raised, unchanged
        """
        value = self.cache.get(key)
        if value is not None:
            logger.debug("Cache hit: %s", key)
            return value

        logger.debug("Cache miss: %s", key)
        if not self.single_flight:
            return await self._produce(key, producer, ttl_ms)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce(key, producer, ttl_ms))
            self._in_flight[key] = task
            task.add_done_callback(functools.partial(self._forget, key))
        else:
            logger.debug("Joining in-flight producer: %s", key)

        return await asyncio.shield(task)

    async def _produce(self, key: str, producer: Producer[T], ttl_ms: float | None) -> T:
        value = await producer()
        self.cache.set(key, value, ttl_ms)
        return value

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the outcome as retrieved; awaiting callers re-raise it themselves
            task.exception()


_default_memoizer: CacheMemoizer | None = None


def get_default_memoizer() -> CacheMemoizer:
    """Return the process-wide memoizer used by :func:`with_cache`.

    It memoizes into the default cache and takes ``single_flight`` from
    settings on first use.
    """
    global _default_memoizer  # pylint: disable=global-statement
    if _default_memoizer is None:
        from larder.config import get_config

        _default_memoizer = CacheMemoizer(single_flight=get_config().cache.single_flight)
    return _default_memoizer


def set_default_memoizer(memoizer: CacheMemoizer | None) -> None:
    """Replace (or with None, drop) the process-wide memoizer."""
    global _default_memoizer  # pylint: disable=global-statement
    _default_memoizer = memoizer


async def with_cache(
    key: str,
    producer: Producer[T],
    ttl_ms: float | None = None,
    *,
    cache: TTLCache | None = None,
) -> T:
    """Return the cached value for ``key`` or await ``producer`` and cache it.

    Args:
        key: Cache key, typically built with :func:`make_cache_key`
        producer: Zero-argument coroutine function computing the value
        ttl_ms: TTL in milliseconds; None uses the cache default
        cache: Cache to use; None means the process-wide memoizer and cache

    Returns:
        The cached or freshly produced value

    Example:
        >>> stock = await with_cache(
        ...     make_cache_key("stock", location_id),
        ...     lambda: backend.fetch_stock(location_id),
        ...     ttl_ms=30_000,
        ... )
    """
    memoizer = get_default_memoizer() if cache is None else CacheMemoizer(cache)
    return await memoizer.get_or_set(key, producer, ttl_ms)


def cached(
    ttl_ms: float | None = None,
    *,
    cache: TTLCache | None = None,
    key_prefix: str | None = None,
    single_flight: bool = False,
) -> Callable[[AsyncFunc], AsyncFunc]:
    """Wrap a coroutine function so its results are memoized per argument list.

    The key is ``{key_prefix or function name}:{serialized arguments}``.

    Args:
        ttl_ms: TTL in milliseconds; None uses the cache default
        cache: Cache to use; None means the process-wide default cache
        key_prefix: Key namespace; defaults to the function name
        single_flight: Share one call between concurrent misses

    Returns:
        Wrapper producing a memoized coroutine function

    Example:
        >>> @cached(ttl_ms=300_000, key_prefix="recipes")
        ... async def get_recipe(recipe_id: str) -> dict:
        ...     return await backend.fetch_recipe(recipe_id)
    """

    def decorator(func: AsyncFunc) -> AsyncFunc:
        prefix = key_prefix or func.__name__
        memoizer = CacheMemoizer(cache, single_flight=single_flight)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = make_cache_key(prefix, serialize_arguments(args, kwargs))
            return await memoizer.get_or_set(key, lambda: func(*args, **kwargs), ttl_ms)

        wrapper.memoizer = memoizer  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = [
    "CacheMemoizer",
    "Producer",
    "cached",
    "get_default_memoizer",
    "make_cache_key",
    "serialize_arguments",
    "set_default_memoizer",
    "with_cache",
]
