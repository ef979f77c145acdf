"""Entry point for ``python -m larder``."""

from __future__ import annotations

import logging
import sys

from larder.cli.error_handler import handle_cli_error
from larder.cli.typer_app import app
from larder.shared.constants import CLIDefaults


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Command interrupted by user")
        sys.exit(CLIDefaults.EXIT_INTERRUPTED)
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        sys.exit(handle_cli_error(e, "larder"))


if __name__ == "__main__":
    main()
