"""Envelope for ``--json`` command output."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
) -> bytes:
    """Encode a command result as indented JSON with sorted keys.

    The envelope always has ``success``, ``command``, ``data``, ``errors``
    and a UTC ``timestamp``. Values orjson cannot encode are stringified.
    """
    envelope = {
        "success": success,
        "command": command,
        "data": data,
        "errors": errors or [],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return orjson.dumps(envelope, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2, default=str)


__all__ = ["format_json_output"]
