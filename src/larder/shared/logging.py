"""
Structured logging for Larder.

Records may carry ``operation``, ``error_code``, ``duration_ms``,
``result_info`` and ``context`` extras. The console shows them through
Rich; log files get one JSON object per line.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from larder.shared.errors import LarderError

_EXTRA_FIELDS = ("operation", "error_code", "duration_ms", "result_info", "context")

_CONSOLE_THEME = Theme(
    {
        "logging.level.debug": "cyan",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "red bold",
        "log.time": "dim cyan",
    }
)


class StructuredFormatter(logging.Formatter):
    """Renders each record as one JSON object, extras included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_structured_logger(
    name: str = "larder",
    level: str = "INFO",
    log_file: str | None = None,
    *,
    use_rich_console: bool = True,
) -> logging.Logger:
    """
    Configure ``name`` for console output and an optional JSON-lines file.

    Calling it again replaces the handlers installed by the previous call.
    The logger stops propagating to the root logger.

    Args:
        name: Logger name (default: "larder")
        level: Log level name, case-insensitive
        log_file: Optional path of a JSON-lines log file
        use_rich_console: Rich console output; False writes JSON to stderr

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    console_handler: logging.Handler
    if use_rich_console:
        console_handler = RichHandler(
            console=Console(theme=_CONSOLE_THEME, stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            log_time_format="[%H:%M:%S]",
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(StructuredFormatter())
    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def log_operation_error(
    logger: logging.Logger,
    error: LarderError,
    operation: str | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """Log ``error`` at error level with its context merged with ``context``.

    The traceback is attached when the error wraps another exception.
    """
    merged = error.context.to_dict()
    merged.update(context or {})
    logger.error(
        error.message,
        extra={
            "operation": operation or error.context.operation,
            "error_code": error.code.name,
            "context": merged,
        },
        exc_info=error.original_error is not None,
    )


def log_operation_start(logger: logging.Logger, operation: str, context: dict[str, Any] | None = None) -> None:
    logger.debug("Starting operation '%s'", operation, extra={"operation": operation, "context": context or {}})


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
) -> None:
    logger.debug(
        "Operation '%s' completed in %.1fms",
        operation,
        duration_ms,
        extra={"operation": operation, "duration_ms": duration_ms, "result_info": result_info or {}},
    )
