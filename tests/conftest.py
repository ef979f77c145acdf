"""
Pytest configuration and shared fixtures for Larder tests.

Time never passes for real in these tests: caches get a fake clock and
retry/sweep loops get a sleep recorder that only yields to the loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Generator

import pytest

from larder.config import reset_config
from larder.services.memoize import set_default_memoizer
from larder.services.ttl_cache import TTLCache, set_default_cache


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class SleepRecorder:
    """Async sleep stand-in that records requested durations in seconds."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    """A cache with a one second default TTL driven by the fake clock."""
    return TTLCache(default_ttl_ms=1000, clock=clock)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _isolate_global_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop process-wide singletons and LARDER_* variables around each test."""
    for name in list(os.environ):
        if name.startswith("LARDER_"):
            monkeypatch.delenv(name, raising=False)

    reset_config()
    set_default_cache(None)
    set_default_memoizer(None)

    yield

    reset_config()
    set_default_cache(None)
    set_default_memoizer(None)

    # The CLI installs its own handlers on the package logger
    package_logger = logging.getLogger("larder")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
