"""
Network Configuration Constants

Retry and preload defaults plus HTTP client settings for the
resource loader.
"""

from .cache import BASE_SECOND


class RetryConfig:
    """Retry-with-backoff defaults."""

    DEFAULT_MAX_ATTEMPTS = 3
    DEFAULT_BASE_DELAY_MS = 1 * BASE_SECOND
    BACKOFF_FACTOR = 2


class PreloadConfig:
    """Priority batch preloader defaults."""

    DEFAULT_CONCURRENCY = 3
    PRIORITY_HIGH = "high"
    PRIORITY_LOW = "low"
    ERROR_MESSAGE_TEMPLATE = "Failed to preload resource: {locator}"


class NetworkConfig:
    """HTTP client configuration for resource loading."""

    # Timeouts in seconds (aiohttp units)
    REQUEST_TIMEOUT = 30.0
    CONNECT_TIMEOUT = 10.0

    USER_AGENT = "Larder/0.1.0"
    PRIORITY_HEADER = "X-Preload-Priority"

    CHUNK_SIZE = 65536  # 64KB
    HTTP_ERROR_THRESHOLD = 400
