"""Priority batch preloader for remote resources.

Given ``(locator, priority)`` descriptors, the preloader loads every
high-priority resource at once, waits for all of them to settle, then
walks the low-priority ones in consecutive windows of ``concurrency``
items. A window starts only after the previous one fully settled.

Each settled load, successful or not, counts once towards
``loaded_count``. Failures are collected in ``errors`` and never abort
the run; ``run`` itself does not raise for a failing resource.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from larder.shared.constants import PreloadConfig
from larder.shared.errors import create_validation_error
from larder.shared.logging import log_operation_start, log_operation_success

logger = logging.getLogger(__name__)


class Priority(str, Enum):
    """Preload priority tier."""

    HIGH = PreloadConfig.PRIORITY_HIGH
    LOW = PreloadConfig.PRIORITY_LOW


class PreloadItem(BaseModel):
    """A remote resource to preload.

    Any priority other than ``high`` is treated as ``low``.
    """

    model_config = ConfigDict(frozen=True)

    resource_locator: str = Field(..., min_length=1, description="Resource URL or locator")
    priority: Priority = Field(default=Priority.LOW, description="Priority tier")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: object) -> Priority:
        if isinstance(value, Priority):
            return value
        if isinstance(value, str) and value.lower() == Priority.HIGH.value:
            return Priority.HIGH
        return Priority.LOW


ResourceLoader = Callable[[str, Priority], Awaitable[None]]
ProgressCallback = Callable[[float], None]


@dataclass
class PreloadState:
    """Observable state of a preload session.

    Attributes:
        is_loading: True while a session is running
        loaded_count: Settled loads so far, failures included
        total_count: Number of resources in the session
        errors: Failure messages in the order they happened
    """

    is_loading: bool = False
    loaded_count: int = 0
    total_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def progress(self) -> float:
        """Completion percentage, 0 when there is nothing to load."""
        if self.total_count == 0:
            return 0.0
        return self.loaded_count / self.total_count * 100

    @property
    def is_complete(self) -> bool:
        return not self.is_loading and self.loaded_count >= self.total_count

    @property
    def failed_count(self) -> int:
        return len(self.errors)


def partition_by_priority(items: Iterable[PreloadItem]) -> tuple[list[PreloadItem], list[PreloadItem]]:
    """Split items into (high, low), keeping relative order inside each tier."""
    high: list[PreloadItem] = []
    low: list[PreloadItem] = []
    for item in items:
        (high if item.priority is Priority.HIGH else low).append(item)
    return high, low


def _to_items(items: Iterable[PreloadItem | tuple[str, str | Priority] | str]) -> list[PreloadItem]:
    result = []
    for item in items:
        if isinstance(item, PreloadItem):
            result.append(item)
        elif isinstance(item, str):
            result.append(PreloadItem(resource_locator=item))
        else:
            locator, priority = item
            result.append(PreloadItem(resource_locator=locator, priority=priority))
    return result


@dataclass
class _Session:
    """One preload run: the state it reports to and its own cancel flag.

    Loads capture the session they started in, so a load that outlives a
    cancelled session never touches the state of a later one.
    """

    state: PreloadState = field(default_factory=PreloadState)
    cancelled: bool = False


class PriorityBatchPreloader:
    """Loads resources high-priority first, then low-priority in windows.

    Args:
        loader: Coroutine function ``(locator, priority) -> None`` that
            raises when a resource cannot be loaded
        concurrency: Window size for low-priority resources (default: 3)
        enabled: When False, ``run`` loads nothing
        on_progress: Called with the new percentage after every settled load

    Raises:
        ApplicationError: If concurrency is less than 1

    Example:
        >>> async with HttpResourceLoader() as http:
        ...     preloader = PriorityBatchPreloader(http, concurrency=3)
        ...     state = await preloader.run([
        ...         PreloadItem(resource_locator=hero_url, priority="high"),
        ...         PreloadItem(resource_locator=thumb_url),
        ...     ])
    """

    def __init__(
        self,
        loader: ResourceLoader,
        concurrency: int = PreloadConfig.DEFAULT_CONCURRENCY,
        *,
        enabled: bool = True,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if concurrency < 1:
            raise create_validation_error(
                message=f"Concurrency must be at least 1, got: {concurrency}",
                field="concurrency",
                operation="preloader_init",
            )

        self.loader = loader
        self.concurrency = concurrency
        self.enabled = enabled
        self.on_progress = on_progress
        self._session = _Session()

    @property
    def state(self) -> PreloadState:
        """State of the most recent session."""
        return self._session.state

    @property
    def cancelled(self) -> bool:
        return self._session.cancelled

    def cancel(self) -> None:
        """Stop the current session.

        No further progress callbacks fire and no further window starts.
        Loads already in flight are left to finish silently.
        """
        session = self._session
        if not session.cancelled:
            logger.debug("Preload session cancelled at %d/%d", session.state.loaded_count, session.state.total_count)
        session.cancelled = True

    async def run(self, items: Iterable[PreloadItem | tuple[str, str | Priority] | str]) -> PreloadState:
        """Preload ``items`` and return the final state.

        Starting a run replaces the previous session. Loads still pending
        from a cancelled earlier run keep reporting to that run only.

        Args:
            items: PreloadItem instances, ``(locator, priority)`` pairs or
                bare locators (low priority)

        Returns:
            The session state once every phase settled or the session was cancelled
        """
        preload_items = _to_items(items)

        if not self.enabled or not preload_items:
            self._session = _Session()
            return self._session.state

        session = _Session(PreloadState(is_loading=True, total_count=len(preload_items)))
        self._session = session
        high, low = partition_by_priority(preload_items)
        started = time.perf_counter()
        log_operation_start(
            logger,
            "preload_resources",
            {"total": len(preload_items), "high": len(high), "low": len(low), "concurrency": self.concurrency},
        )

        try:
            if high:
                await self._settle(session, high)

            for window in self._windows(low):
                if session.cancelled:
                    break
                await self._settle(session, window)
        finally:
            session.state.is_loading = False

        log_operation_success(
            logger,
            "preload_resources",
            duration_ms=(time.perf_counter() - started) * 1000,
            result_info={
                "loaded": session.state.loaded_count,
                "total": session.state.total_count,
                "failed": session.state.failed_count,
                "cancelled": session.cancelled,
            },
        )
        return session.state

    async def preload_resource(self, locator: str, priority: Priority | str = Priority.LOW) -> bool:
        """Load one resource with the same accounting as a session item.

        Outside a running session the resource is added to ``total_count``
        as well, so progress stays meaningful. A cancelled session is
        resumed under a fresh cancel flag.

        Returns:
            True if the resource loaded, False if it failed
        """
        item = PreloadItem(resource_locator=locator, priority=priority)
        session = self._session
        if not session.state.is_loading:
            if session.cancelled:
                session = _Session(session.state)
                self._session = session
            session.state.total_count += 1
        return await self._load_one(session, item)

    def _windows(self, items: Sequence[PreloadItem]) -> Iterable[Sequence[PreloadItem]]:
        for start in range(0, len(items), self.concurrency):
            yield items[start : start + self.concurrency]

    async def _settle(self, session: _Session, items: Sequence[PreloadItem]) -> None:
        # _load_one never raises, so gather waits for every item
        await asyncio.gather(*(self._load_one(session, item) for item in items))

    async def _load_one(self, session: _Session, item: PreloadItem) -> bool:
        try:
            await self.loader(item.resource_locator, item.priority)
            loaded = True
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Per-item failures are recorded, never propagated
            message = PreloadConfig.ERROR_MESSAGE_TEMPLATE.format(locator=item.resource_locator)
            if not session.cancelled:
                session.state.errors.append(message)
            logger.warning(
                "%s (%s)",
                message,
                e,
                extra={
                    "operation": "preload_resource",
                    "context": {"resource": item.resource_locator, "priority": item.priority.value},
                },
            )
            loaded = False

        if not session.cancelled:
            session.state.loaded_count += 1
            if self.on_progress is not None:
                self.on_progress(session.state.progress)
        return loaded


async def preload_resources(
    items: Iterable[PreloadItem | tuple[str, str | Priority] | str],
    loader: ResourceLoader,
    concurrency: int = PreloadConfig.DEFAULT_CONCURRENCY,
) -> PreloadState:
    """One-shot helper: preload ``items`` with a throwaway preloader."""
    return await PriorityBatchPreloader(loader, concurrency).run(items)


__all__ = [
    "PreloadItem",
    "PreloadState",
    "Priority",
    "PriorityBatchPreloader",
    "ProgressCallback",
    "ResourceLoader",
    "partition_by_priority",
    "preload_resources",
]
