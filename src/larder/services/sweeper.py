"""Recurring cleanup sweep for the TTL cache.

Expired entries are only evicted on read or by an explicit
``cleanup()``. The sweeper runs that cleanup on a fixed interval as an
asyncio task for as long as it is started.
"""

from __future__ import annotations

import asyncio
import logging
import types
from typing import Awaitable, Callable

from typing_extensions import Self

from larder.config.models.cache_settings import CacheSettings
from larder.services.ttl_cache import TTLCache, get_default_cache
from larder.shared.constants import CacheConfig
from larder.shared.error_handling import map_exception_to_larder_error
from larder.shared.errors import ErrorCode, create_validation_error
from larder.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class CacheSweeper:
    """Periodically evicts expired entries from a :class:`TTLCache`.

    Args:
        cache: Cache to sweep
        interval_ms: Time between sweeps in milliseconds (default: one hour)
        sleep: Awaitable sleep taking seconds, injectable for tests

    Raises:
        ApplicationError: If interval_ms is not positive

    Example:
        >>> async with CacheSweeper(cache, interval_ms=60_000):
        ...     await serve_forever()
    """

    def __init__(
        self,
        cache: TTLCache,
        interval_ms: float = CacheConfig.SWEEP_INTERVAL_MS,
        *,
        sleep: SleepFunc | None = None,
    ) -> None:
        if interval_ms <= 0:
            raise create_validation_error(
                message=f"Sweep interval must be positive, got: {interval_ms}",
                field="interval_ms",
                operation="cache_sweeper_init",
            )

        self.cache = cache
        self.interval_ms = interval_ms
        self.sweep_count = 0
        self.evicted_total = 0
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the background task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop.

        Starting an already running sweeper does nothing.
        """
        if self.running:
            return

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="larder-cache-sweeper")
        logger.debug("Cache sweeper started (interval=%sms)", self.interval_ms)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cache sweeper stopped after %d sweeps", self.sweep_count)

    def sweep_once(self) -> int:
        """Run one cleanup pass and return the number of evicted entries."""
        evicted = self.cache.cleanup()
        self.sweep_count += 1
        self.evicted_total += evicted
        logger.debug(
            "Cache sweep #%d evicted %d entries",
            self.sweep_count,
            evicted,
            extra={"operation": "cache_sweep", "result_info": {"evicted": evicted}},
        )
        return evicted

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval_ms / 1000.0)
            try:
                self.sweep_once()
            except Exception as e:  # pylint: disable=broad-exception-caught
                # The loop must outlive a failing pass
                error = map_exception_to_larder_error(e, "cache_sweep", ErrorCode.CACHE_ERROR)
                log_operation_error(logger, error, "cache_sweep", {"sweep_count": self.sweep_count})

    @classmethod
    def from_settings(cls, cache: TTLCache, settings: CacheSettings) -> Self:
        """Build a sweeper using the configured sweep interval."""
        return cls(cache, interval_ms=settings.sweep_interval_ms)

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.stop()


def start_default_sweeper() -> CacheSweeper | None:
    """Start sweeping the process-wide cache if settings enable it.

    Must be called from a running event loop. Returns None when
    ``cache.sweep_enabled`` is off.
    """
    from larder.config import get_config

    settings = get_config().cache
    if not settings.sweep_enabled:
        logger.debug("Cache sweeping disabled by configuration")
        return None

    sweeper = CacheSweeper.from_settings(get_default_cache(), settings)
    sweeper.start()
    return sweeper


__all__ = ["CacheSweeper", "start_default_sweeper"]
