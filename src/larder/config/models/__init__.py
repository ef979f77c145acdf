"""Configuration domain models."""

from __future__ import annotations

from .app_settings import LoggingSettings
from .cache_settings import CacheSettings
from .resilience_settings import PreloadSettings, RetrySettings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "PreloadSettings",
    "RetrySettings",
]
