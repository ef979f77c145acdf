"""Retry and preload configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from larder.shared.constants import NetworkConfig, PreloadConfig, RetryConfig


class RetrySettings(BaseModel):
    """Retry-with-backoff configuration.

    The delay before retry ``n`` is ``base_delay_ms * 2 ** (n - 1)``.
    """

    max_attempts: int = Field(
        default=RetryConfig.DEFAULT_MAX_ATTEMPTS,
        ge=1,
        description="Total number of attempts, first one included",
    )
    base_delay_ms: int = Field(
        default=RetryConfig.DEFAULT_BASE_DELAY_MS,
        ge=0,
        description="Delay before the first retry in milliseconds",
    )


class PreloadSettings(BaseModel):
    """Resource preloader configuration."""

    enabled: bool = Field(default=True, description="Enable preloading")
    concurrency: int = Field(
        default=PreloadConfig.DEFAULT_CONCURRENCY,
        gt=0,
        description="Window size for low-priority resources",
    )
    request_timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    user_agent: str = Field(
        default=NetworkConfig.USER_AGENT,
        description="User-Agent header sent by the HTTP loader",
    )


__all__ = ["PreloadSettings", "RetrySettings"]
