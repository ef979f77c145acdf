"""
Cache Configuration Constants

Time units here are milliseconds, matching the cache API.
"""

BASE_SECOND = 1000
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE


class CacheConfig:
    """In-process cache configuration."""

    DEFAULT_TTL_MS = BASE_HOUR  # 1 hour

    # Recurring sweep
    SWEEP_INTERVAL_MS = BASE_HOUR

    # Key construction
    KEY_SEPARATOR = ":"
    MAX_KEY_LENGTH = 250
    KEY_HASH_LENGTH = 32
