"""Larder Configuration Module

Unified access to configuration models and settings management.
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config, reset_config
from .models import CacheSettings, LoggingSettings, PreloadSettings, RetrySettings
from .models.settings import Settings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "PreloadSettings",
    "RetrySettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
