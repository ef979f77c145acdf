"""
CLI Constants

Command names, option flags, help text and exit codes for the
Larder command line.
"""


class CLICommands:
    """Command names."""

    PRELOAD = "preload"
    CONFIG = "config"
    CONFIG_SHOW = "show"


class CLIOptions:
    """Option flags."""

    HIGH = "--high"
    CONCURRENCY = "--concurrency"
    CONCURRENCY_SHORT = "-c"
    JSON = "--json"
    CONFIG_FILE = "--config"
    LOG_LEVEL = "--log-level"
    VERSION = "--version"


class CLIDefaults:
    """Default values and exit codes."""

    VERSION = "0.1.0"
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_INTERRUPTED = 130


class CLIHelp:
    """Help text."""

    APP_NAME = "larder"
    APP_DESCRIPTION = "In-process cache, retry and resource preloading toolkit for kitchen inventory data."
    VERSION_TEXT = "Larder v{version}"
    PRELOAD_HELP = "Preload remote resources (e.g. product images) with priority batching."
    PRELOAD_URLS_HELP = "Low-priority resource URLs, loaded in windows after high-priority ones."
    PRELOAD_HIGH_HELP = "High-priority resource URL. Repeat for several."
    PRELOAD_CONCURRENCY_HELP = "Window size for low-priority resources."
    JSON_HELP = "Print machine-readable JSON instead of rich output."
    CONFIG_HELP = "Inspect configuration."
    CONFIG_SHOW_HELP = "Show the effective configuration."
    CONFIG_FILE_HELP = "Path to a TOML configuration file."
    LOG_LEVEL_HELP = "Log level (DEBUG, INFO, WARNING, ERROR)."
    VERSION_HELP = "Show version and exit."


class CLIMessages:
    """User-facing messages."""

    PRELOAD_DESCRIPTION = "Preloading resources"
    PRELOAD_SUMMARY = "Loaded {loaded}/{total} resources ({failed} failed)"
    PRELOAD_NOTHING = "No resources to preload."
    INTERRUPTED = "Operation interrupted by user"
