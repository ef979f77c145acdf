"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from an optional .env file
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from larder.config.models.settings import Settings
from larder.shared.errors import create_config_error
from larder.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("config/larder.toml"),
    Path("larder.toml"),
    Path.home() / ".larder" / "config.toml",
)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking so the common path takes no lock.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration sources."""
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance

    def reset(self) -> None:
        """Forget the cached instance."""
        with self._lock:
            self._instance = None


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load environment variables from a .env file when one exists.

    Values already present in the environment win.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. When None the default
            locations are tried in order, then the environment alone.

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ApplicationError: If the configuration fails validation
    """
    _load_env_file()

    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        for candidate in DEFAULT_CONFIG_PATHS:
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()

    except ValidationError as e:
        error = create_config_error(
            message=f"Invalid configuration: {e.error_count()} validation error(s)",
            config_key=str(e.errors()[0]["loc"][0]) if e.errors() else None,
            operation="load_settings",
            original_error=e,
        )
        log_operation_error(logger, error, "load_settings")
        raise error from e


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance."""
    return _loader.reload_config(config_path)


def reset_config() -> None:
    """Drop the cached settings instance so the next access reloads."""
    _loader.reset()


__all__ = [
    "DEFAULT_CONFIG_PATHS",
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
