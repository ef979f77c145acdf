"""Services module for Larder.

The cache store, its sweeper, memoization, retry and preloading.
"""

from .memoize import (
    CacheMemoizer,
    cached,
    get_default_memoizer,
    make_cache_key,
    set_default_memoizer,
    with_cache,
)
from .preloader import (
    PreloadItem,
    PreloadState,
    Priority,
    PriorityBatchPreloader,
    preload_resources,
)
from .retry import RetryAttempt, RetryPolicy, compute_backoff_delay, retrying, with_retry
from .sweeper import CacheSweeper, start_default_sweeper
from .ttl_cache import CacheEntry, CacheStats, TTLCache, get_default_cache, set_default_cache

__all__ = [
    "CacheEntry",
    "CacheMemoizer",
    "CacheStats",
    "CacheSweeper",
    "PreloadItem",
    "PreloadState",
    "Priority",
    "PriorityBatchPreloader",
    "RetryAttempt",
    "RetryPolicy",
    "TTLCache",
    "cached",
    "compute_backoff_delay",
    "get_default_cache",
    "get_default_memoizer",
    "make_cache_key",
    "preload_resources",
    "retrying",
    "set_default_cache",
    "set_default_memoizer",
    "start_default_sweeper",
    "with_cache",
    "with_retry",
]
