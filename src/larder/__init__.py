"""
Larder - caching and resilience core for kitchen inventory data

An in-process TTL cache with a recurring sweep, memoization of async
producers, retry with exponential backoff and a priority batch preloader
for product images and other remote resources.
"""

__version__ = "0.1.0"
__author__ = "Larder Team"

from .services import (
    CacheSweeper,
    PreloadItem,
    Priority,
    PriorityBatchPreloader,
    TTLCache,
    cached,
    with_cache,
    with_retry,
)

__all__ = [
    "CacheSweeper",
    "PreloadItem",
    "Priority",
    "PriorityBatchPreloader",
    "TTLCache",
    "cached",
    "with_cache",
    "with_retry",
]
