"""Retry-with-backoff executor.

Runs a fallible coroutine up to ``max_attempts`` times, one attempt at a
time, waiting ``base_delay_ms * 2 ** (attempt - 1)`` between attempts.
When the last attempt fails its exception is re-raised as is; earlier
failures are only logged.

There is no timeout here. An attempt ends when the wrapped operation
returns or raises.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from larder.config.models import RetrySettings
from larder.shared.constants import RetryConfig
from larder.shared.errors import create_validation_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[], Awaitable[T]]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryAttempt:
    """Description of one failed attempt.

    Attributes:
        attempt_number: 1-based attempt index
        max_attempts: Attempt budget
        delay_before_next_attempt_ms: Backoff before the next attempt,
            None after the final attempt
    """

    attempt_number: int
    max_attempts: int
    delay_before_next_attempt_ms: float | None

    @property
    def is_final(self) -> bool:
        return self.attempt_number >= self.max_attempts


RetryCallback = Callable[[RetryAttempt, BaseException], None]


def compute_backoff_delay(attempt: int, base_delay_ms: float) -> float:
    """Return the delay in ms that follows failed attempt ``attempt``.

    Example:
        >>> [compute_backoff_delay(n, 100) for n in (1, 2, 3)]
        [100, 200, 400]
    """
    if attempt < 1:
        raise create_validation_error(
            message=f"Attempt numbers start at 1, got: {attempt}",
            field="attempt",
            operation="compute_backoff_delay",
        )
    return base_delay_ms * RetryConfig.BACKOFF_FACTOR ** (attempt - 1)


def _validate_budget(max_attempts: int, base_delay_ms: float) -> None:
    if max_attempts < 1:
        raise create_validation_error(
            message=f"max_attempts must be at least 1, got: {max_attempts}",
            field="max_attempts",
            operation="with_retry",
        )
    if base_delay_ms < 0:
        raise create_validation_error(
            message=f"base_delay_ms must be non-negative, got: {base_delay_ms}",
            field="base_delay_ms",
            operation="with_retry",
        )


async def with_retry(
    operation: Operation[T],
    max_attempts: int = RetryConfig.DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: float = RetryConfig.DEFAULT_BASE_DELAY_MS,
    *,
    sleep: SleepFunc | None = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    on_retry: RetryCallback | None = None,
) -> T:
    """Await ``operation`` until it succeeds or the attempt budget runs out.

    Args:
        operation: Zero-argument coroutine function to run
        max_attempts: Total attempts including the first (>= 1)
        base_delay_ms: Delay before the first retry in milliseconds
        sleep: Awaitable sleep taking seconds, injectable for tests
        retry_on: Exception types that trigger a retry; others propagate at once
        on_retry: Called with the attempt record and error before each delay

    Returns:
        The first successful result

    Raises:
        ApplicationError: If max_attempts < 1 or base_delay_ms < 0
        Exception: The exception raised by the final attempt

    Example:
        >>> menu = await with_retry(lambda: backend.fetch_menu(menu_id), max_attempts=5)
    """
    _validate_budget(max_attempts, base_delay_ms)
    sleep_func: SleepFunc = sleep or asyncio.sleep

    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as e:
            final = attempt >= max_attempts

            logger.warning(
                "Attempt %d/%d failed: %s",
                attempt,
                max_attempts,
                e,
                extra={
                    "operation": "with_retry",
                    "context": {
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "error_type": type(e).__name__,
                    },
                },
            )

            if final:
                logger.error(
                    "Giving up after %d attempt(s)",
                    max_attempts,
                    extra={"operation": "with_retry", "context": {"max_attempts": max_attempts}},
                )
                raise

            delay_ms = compute_backoff_delay(attempt, base_delay_ms)
            if on_retry is not None:
                on_retry(RetryAttempt(attempt, max_attempts, delay_ms), e)

            await sleep_func(delay_ms / 1000.0)
            attempt += 1


def retrying(
    operation: Operation[T],
    max_attempts: int = RetryConfig.DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: float = RetryConfig.DEFAULT_BASE_DELAY_MS,
    **kwargs: object,
) -> Operation[T]:
    """Return a producer equivalent to ``operation`` with the retry policy applied.

    Handy for composing with :func:`~larder.services.memoize.with_cache`:

        >>> await with_cache(key, retrying(fetch_recipe, max_attempts=3))
    """
    _validate_budget(max_attempts, base_delay_ms)

    async def wrapped() -> T:
        return await with_retry(operation, max_attempts, base_delay_ms, **kwargs)  # type: ignore[arg-type]

    return wrapped


class RetryPolicy(BaseModel):
    """Reusable retry budget, usually built from settings."""

    max_attempts: int = Field(default=RetryConfig.DEFAULT_MAX_ATTEMPTS, ge=1)
    base_delay_ms: float = Field(default=RetryConfig.DEFAULT_BASE_DELAY_MS, ge=0)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryPolicy:
        return cls(max_attempts=settings.max_attempts, base_delay_ms=settings.base_delay_ms)

    def delays_ms(self) -> list[float]:
        """Backoff delays between attempts, in order (one fewer than attempts)."""
        return [compute_backoff_delay(n, self.base_delay_ms) for n in range(1, self.max_attempts)]

    async def run(
        self,
        operation: Operation[T],
        *,
        sleep: SleepFunc | None = None,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        on_retry: RetryCallback | None = None,
    ) -> T:
        """Run ``operation`` under this policy (see :func:`with_retry`)."""
        return await with_retry(
            operation,
            self.max_attempts,
            self.base_delay_ms,
            sleep=sleep,
            retry_on=retry_on,
            on_retry=on_retry,
        )


__all__ = [
    "Operation",
    "RetryAttempt",
    "RetryPolicy",
    "compute_backoff_delay",
    "retrying",
    "with_retry",
]
