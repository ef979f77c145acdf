"""Mapping of foreign exceptions onto the Larder error hierarchy."""

from __future__ import annotations

import asyncio

from larder.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    LarderError,
)

_NETWORK_TYPES = (asyncio.TimeoutError, TimeoutError, ConnectionError, OSError)
_DATA_TYPES = (ValueError, KeyError, TypeError, AttributeError)
_CANCEL_TYPES = (KeyboardInterrupt, asyncio.CancelledError)


def map_exception_to_larder_error(
    error: BaseException,
    operation: str,
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> LarderError:
    """Wrap ``error`` in the matching LarderError, keeping it as ``original_error``.

    Larder errors are returned unchanged. Timeouts and socket/OS errors map
    to ``NETWORK_ERROR``, bad data to ``DATA_PROCESSING_ERROR``,
    interruption to ``OPERATION_CANCELLED``; anything else becomes an
    InfrastructureError with ``default_code``.

    Example:
        >>> try:
        ...     cache.cleanup()
        ... except Exception as e:
        ...     error = map_exception_to_larder_error(e, "cache_sweep", ErrorCode.CACHE_ERROR)
    """
    if isinstance(error, LarderError):
        return error

    context = ErrorContext(operation=operation, additional_data={"original_error_type": type(error).__name__})

    if isinstance(error, _NETWORK_TYPES):
        return InfrastructureError(ErrorCode.NETWORK_ERROR, f"Network error: {error}", context, error)
    if isinstance(error, _DATA_TYPES):
        return ApplicationError(ErrorCode.DATA_PROCESSING_ERROR, f"Data processing error: {error}", context, error)
    if isinstance(error, _CANCEL_TYPES):
        return ApplicationError(ErrorCode.OPERATION_CANCELLED, "Operation interrupted", context, error)
    return InfrastructureError(default_code, f"Unexpected error: {error}", context, error)
