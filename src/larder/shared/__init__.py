"""Larder Shared Module.

This package contains constants, error types and logging helpers used across Larder.
"""

__all__ = ["constants", "error_handling", "errors", "logging"]
