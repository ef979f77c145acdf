"""Tests for settings loading and the process-wide settings instance.

Includes the concurrency check that get_config() hands every thread
the same instance.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from larder.config import get_config, load_settings, reload_config, reset_config
from larder.config.loader import _load_env_file
from larder.shared.errors import ApplicationError, ErrorCode


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory so no local larder.toml or .env is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadSettings:
    def test_without_files_uses_environment(self, isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LARDER_PRELOAD__CONCURRENCY", "6")

        assert load_settings().preload.concurrency == 6

    def test_explicit_path(self, isolated_cwd: Path) -> None:
        path = isolated_cwd / "custom.toml"
        path.write_text("[retry]\nmax_attempts = 9\n", encoding="utf-8")

        assert load_settings(path).retry.max_attempts == 9

    def test_default_location_is_searched(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "config").mkdir()
        (isolated_cwd / "config" / "larder.toml").write_text("[cache]\ndefault_ttl_ms = 5\n", encoding="utf-8")

        assert load_settings().cache.default_ttl_ms == 5

    def test_explicit_missing_path_raises(self, isolated_cwd: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(isolated_cwd / "absent.toml")

    def test_invalid_configuration_becomes_config_error(self, isolated_cwd: Path) -> None:
        path = isolated_cwd / "bad.toml"
        path.write_text("[preload]\nconcurrency = 0\n", encoding="utf-8")

        with pytest.raises(ApplicationError) as exc_info:
            load_settings(path)

        error = exc_info.value
        assert error.code is ErrorCode.CONFIG_ERROR
        assert error.context.additional_data == {"config_key": "preload"}
        assert error.__cause__ is error.original_error

    def test_env_file_loaded_without_override(self, isolated_cwd: Path, mocker: MockerFixture) -> None:
        load_dotenv = mocker.patch("larder.config.loader.load_dotenv")
        (isolated_cwd / ".env").write_text("LARDER_RETRY__MAX_ATTEMPTS=4\n", encoding="utf-8")

        _load_env_file()

        load_dotenv.assert_called_once_with(Path(".env"), override=False)

    def test_missing_env_file_is_skipped(self, isolated_cwd: Path, mocker: MockerFixture) -> None:
        load_dotenv = mocker.patch("larder.config.loader.load_dotenv")

        _load_env_file()

        load_dotenv.assert_not_called()


class TestSettingsSingleton:
    def test_get_config_is_cached(self, isolated_cwd: Path) -> None:
        assert get_config() is get_config()

    def test_reload_replaces_instance(self, isolated_cwd: Path) -> None:
        first = get_config()
        path = isolated_cwd / "larder.toml"
        path.write_text("[retry]\nmax_attempts = 2\n", encoding="utf-8")

        second = reload_config(path)

        assert second is not first
        assert get_config() is second
        assert second.retry.max_attempts == 2

    def test_reset_forces_reload(self, isolated_cwd: Path) -> None:
        first = get_config()
        reset_config()

        assert get_config() is not first

    def test_concurrent_get_config_returns_one_instance(self, isolated_cwd: Path) -> None:
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: get_config(), range(32)))

        assert all(r is results[0] for r in results)
