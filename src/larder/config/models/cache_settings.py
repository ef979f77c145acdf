"""Cache configuration model.

TTL and sweep settings for the in-process cache, in milliseconds.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from larder.shared.constants import CacheConfig


class CacheSettings(BaseModel):
    """Cache configuration.

    Controls the default time-to-live of entries, the recurring sweep
    and whether concurrent misses share one producer call.
    """

    default_ttl_ms: int = Field(
        default=CacheConfig.DEFAULT_TTL_MS,
        description="Default entry time-to-live in milliseconds",
    )
    sweep_enabled: bool = Field(default=True, description="Run the recurring cleanup sweep")
    sweep_interval_ms: int = Field(
        default=CacheConfig.SWEEP_INTERVAL_MS,
        gt=0,
        description="Interval between cleanup sweeps in milliseconds",
    )
    single_flight: bool = Field(
        default=False,
        description="Share one producer call between concurrent misses on a key",
    )


__all__ = ["CacheSettings"]
