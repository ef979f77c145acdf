"""
Larder Constants Module

Centralized constants for Larder. All magic values and defaults are
defined here so services, configuration and the CLI agree on them.
"""

from .cache import BASE_HOUR, BASE_MINUTE, BASE_SECOND, CacheConfig
from .cli import CLICommands, CLIDefaults, CLIHelp, CLIMessages, CLIOptions
from .network import NetworkConfig, PreloadConfig, RetryConfig

__all__ = [
    "BASE_HOUR",
    "BASE_MINUTE",
    "BASE_SECOND",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIMessages",
    "CLIOptions",
    "CacheConfig",
    "NetworkConfig",
    "PreloadConfig",
    "RetryConfig",
]
