"""Larder error types.

Every error code lives in :class:`ErrorCode`. Errors carry an immutable
:class:`ErrorContext` naming the operation and the cache key or resource
locator involved, and keep the exception they wrap as ``original_error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes raised or mapped by Larder."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"

    NETWORK_ERROR = "NETWORK_ERROR"

    CACHE_ERROR = "CACHE_ERROR"
    CACHE_SERIALIZATION_ERROR = "CACHE_SERIALIZATION_ERROR"

    # Fallbacks for foreign exceptions
    DATA_PROCESSING_ERROR = "DATA_PROCESSING_ERROR"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    CLI_COMMAND_FAILED = "CLI_COMMAND_FAILED"
    CLI_COMMAND_INTERRUPTED = "CLI_COMMAND_INTERRUPTED"
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Reduce ``additional_data`` to JSON-friendly primitives.

    Paths become strings, enums their value, decimals floats. None values
    are dropped.

    Raises:
        TypeError: If value is not a dict or holds any other type
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        raise TypeError(f"additional_data must be dict, got {type(value).__name__}")

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if val is None:
            continue
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            raise TypeError(
                f"Cannot coerce {type(val).__name__} in additional_data[{key!r}]; "
                "use str, int, float, bool, Path, Enum or Decimal"
            )
    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened.

    Attributes:
        operation: Name of the failing operation (``cache_get``, ``preload_resource``...)
        resource: Cache key or resource locator involved
        additional_data: Extra primitive values such as a status code
    """

    operation: str | None = None
    resource: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None:
            object.__setattr__(self, "additional_data", _coerce_primitives(self.additional_data))

    def to_dict(self) -> dict[str, Any]:
        """Set fields only, with ``additional_data`` always present."""
        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation
        if self.resource is not None:
            data["resource"] = self.resource
        data["additional_data"] = self.additional_data or {}
        return data


class LarderError(Exception):
    """Base class for every error Larder raises."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serializable form used by structured logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class InfrastructureError(LarderError):
    """Failures talking to remote resources."""


class ApplicationError(LarderError):
    """Invalid arguments to the public API and configuration problems."""


class CacheError(InfrastructureError):
    """Errors raised by the cache layer itself (key derivation, serialization)."""


class CliError(ApplicationError):
    """Error reported by a CLI command, with the exit code to use."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def create_validation_error(
    message: str,
    field: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Invalid argument, e.g. a non-positive TTL or concurrency."""
    context = ErrorContext(operation=operation, additional_data={"field": field} if field else None)
    return ApplicationError(ErrorCode.VALIDATION_ERROR, message, context, original_error)


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    context = ErrorContext(operation=operation, additional_data={"config_key": config_key} if config_key else None)
    return ApplicationError(ErrorCode.CONFIG_ERROR, message, context, original_error)


def create_network_error(
    message: str,
    resource: str | None = None,
    operation: str | None = None,
    status_code: int | None = None,
    original_error: Exception | None = None,
) -> InfrastructureError:
    """Failed request for a remote resource, with the HTTP status when there was one."""
    context = ErrorContext(
        operation=operation,
        resource=resource,
        additional_data={"status_code": status_code} if status_code is not None else None,
    )
    return InfrastructureError(ErrorCode.NETWORK_ERROR, message, context, original_error)


def create_cache_error(
    message: str,
    key: str | None = None,
    operation: str | None = None,
    code: ErrorCode = ErrorCode.CACHE_ERROR,
    original_error: Exception | None = None,
) -> CacheError:
    return CacheError(code, message, ErrorContext(operation=operation, resource=key), original_error)


def create_cli_error(
    message: str,
    command: str | None = None,
    operation: str | None = None,
    original_error: BaseException | None = None,
    exit_code: int = 1,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
) -> CliError:
    context = ErrorContext(operation=operation, additional_data={"command": command} if command else None)
    return CliError(code, message, context, original_error, command, exit_code)
