"""
CLI error reporting.

Any exception escaping a command becomes a :class:`CliError`, is logged
once and printed either as ``Error: ...`` on stderr or as a JSON envelope
on stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from larder.cli.json_formatter import format_json_output
from larder.shared.constants import CLIDefaults, CLIMessages
from larder.shared.errors import (
    ApplicationError,
    CliError,
    ErrorCode,
    LarderError,
    create_cli_error,
)

logger = logging.getLogger(__name__)

# Message prefixes for exceptions raised outside Larder, first match wins
_FOREIGN_ERROR_PREFIXES: tuple[tuple[tuple[type[BaseException], ...], str], ...] = (
    ((OSError,), "File system error"),
    ((ValueError, KeyError, TypeError, AttributeError), "Data processing error"),
)


def handle_cli_error(
    error: BaseException,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Report ``error`` for ``command`` and return the exit code to use.

    Args:
        error: The exception that ended the command
        command: Command name, recorded in the error context
        json_output: Print a JSON envelope on stdout instead of stderr text
    """
    context: dict[str, Any] = {"command": command, "error_type": type(error).__name__}
    cli_error = _to_cli_error(error, command, context)

    if isinstance(error, KeyboardInterrupt):
        logger.warning("Command interrupted: %s", command, extra={"context": context})
    else:
        logger.error(
            "CLI error in %s: %s",
            command,
            cli_error.message,
            extra={"error_code": cli_error.code.value, "context": context},
            exc_info=error,
        )

    if json_output:
        payload = format_json_output(
            success=False,
            command=command,
            errors=[cli_error.message],
            data={"error_code": cli_error.code.value, "exit_code": cli_error.exit_code, "context": context},
        )
        sys.stdout.write(payload.decode("utf-8") + "\n")
        sys.stdout.flush()
    else:
        sys.stderr.write(f"Error: {cli_error.message}\n")

    return cli_error.exit_code


def _to_cli_error(error: BaseException, command: str, context: dict[str, Any]) -> CliError:
    if isinstance(error, CliError):
        context["error_code"] = error.code.value
        return error

    if isinstance(error, LarderError):
        context["error_code"] = error.code.value
        kind = "Application" if isinstance(error, ApplicationError) else "Infrastructure"
        return create_cli_error(
            f"{kind} error: {error.message}",
            command=command,
            original_error=error,
            code=ErrorCode.CLI_COMMAND_FAILED,
        )

    if isinstance(error, KeyboardInterrupt):
        return create_cli_error(
            CLIMessages.INTERRUPTED,
            command=command,
            original_error=error,
            exit_code=CLIDefaults.EXIT_INTERRUPTED,
            code=ErrorCode.CLI_COMMAND_INTERRUPTED,
        )

    prefix = next(
        (text for types_, text in _FOREIGN_ERROR_PREFIXES if isinstance(error, types_)),
        "Unexpected error",
    )
    return create_cli_error(f"{prefix}: {error}", command=command, original_error=error)


__all__ = ["handle_cli_error"]
