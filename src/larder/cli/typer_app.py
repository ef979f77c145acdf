"""
Larder Typer CLI Application

Command line entry point for preloading remote resources and inspecting
the effective configuration.
"""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from larder.cli.error_handler import handle_cli_error
from larder.cli.json_formatter import format_json_output
from larder.cli.progress import ProgressManager
from larder.config import Settings, get_config, reload_config
from larder.config.models import PreloadSettings
from larder.services.http_loader import HttpResourceLoader
from larder.services.preloader import PreloadItem, PreloadState, Priority, PriorityBatchPreloader
from larder.shared.constants import (
    CLICommands,
    CLIDefaults,
    CLIHelp,
    CLIMessages,
    CLIOptions,
)
from larder.shared.logging import setup_structured_logger

__version__ = CLIDefaults.VERSION


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=__version__))
        raise typer.Exit


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

config_app = typer.Typer(help=CLIHelp.CONFIG_HELP, no_args_is_help=True)
app.add_typer(config_app, name=CLICommands.CONFIG)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None,
        CLIOptions.CONFIG_FILE,
        help=CLIHelp.CONFIG_FILE_HELP,
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: str | None = typer.Option(
        None,
        CLIOptions.LOG_LEVEL,
        help=CLIHelp.LOG_LEVEL_HELP,
    ),
    version: bool = typer.Option(
        False,
        CLIOptions.VERSION,
        help=CLIHelp.VERSION_HELP,
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Load settings and configure logging before any command runs."""
    try:
        settings = reload_config(config_file) if config_file else get_config()
        setup_structured_logger(
            "larder",
            level=log_level or settings.logging.level,
            log_file=settings.logging.file,
            use_rich_console=settings.logging.rich_console,
        )
    except Exception as e:  # noqa: BLE001
        exit_code = handle_cli_error(e, "main-callback")
        raise typer.Exit(exit_code) from e

    ctx.obj = settings


def _collect_items(urls: list[str] | None, high: list[str] | None) -> list[PreloadItem]:
    items = [PreloadItem(resource_locator=url, priority=Priority.HIGH) for url in high or []]
    items.extend(PreloadItem(resource_locator=url, priority=Priority.LOW) for url in urls or [])
    return items


async def _run_preload(
    items: list[PreloadItem],
    settings: PreloadSettings,
    concurrency: int,
    *,
    show_progress: bool,
) -> PreloadState:
    progress = ProgressManager(disabled=not show_progress)

    async with HttpResourceLoader.from_settings(settings) as http:
        with progress.task(CLIMessages.PRELOAD_DESCRIPTION, total=len(items)) as update:
            preloader = PriorityBatchPreloader(
                http,
                concurrency,
                enabled=settings.enabled,
                on_progress=lambda _percent: update(preloader.state.loaded_count),
            )
            return await preloader.run(items)


def _print_preload_summary(state: PreloadState) -> None:
    console = Console()
    summary = CLIMessages.PRELOAD_SUMMARY.format(
        loaded=state.loaded_count - state.failed_count,
        total=state.total_count,
        failed=state.failed_count,
    )
    console.print(f"[bold {'red' if state.errors else 'green'}]{summary}[/]")
    for message in state.errors:
        console.print(f"  [red]✗[/] {message}", highlight=False)


@app.command(CLICommands.PRELOAD, help=CLIHelp.PRELOAD_HELP)
def preload_command(
    ctx: typer.Context,
    urls: list[str] | None = typer.Argument(None, help=CLIHelp.PRELOAD_URLS_HELP),
    high: list[str] | None = typer.Option(None, CLIOptions.HIGH, help=CLIHelp.PRELOAD_HIGH_HELP),
    concurrency: int | None = typer.Option(
        None,
        CLIOptions.CONCURRENCY,
        CLIOptions.CONCURRENCY_SHORT,
        min=1,
        help=CLIHelp.PRELOAD_CONCURRENCY_HELP,
    ),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """
    Preload remote resources, high-priority ones first.

    Examples:
        # Two hero images first, then thumbnails three at a time
        larder preload --high https://cdn.example.com/a.webp --high https://cdn.example.com/b.webp \\
            https://cdn.example.com/t1.webp https://cdn.example.com/t2.webp

        # Machine-readable summary
        larder preload https://cdn.example.com/t1.webp --json
    """
    settings: Settings = ctx.obj
    items = _collect_items(urls, high)

    if not items:
        if json_output:
            typer.echo(format_json_output(True, CLICommands.PRELOAD, dataclasses.asdict(PreloadState())).decode("utf-8"))
        else:
            typer.echo(CLIMessages.PRELOAD_NOTHING)
        return

    try:
        state = asyncio.run(
            _run_preload(
                items,
                settings.preload,
                concurrency or settings.preload.concurrency,
                show_progress=not json_output,
            )
        )
    except (Exception, KeyboardInterrupt) as e:  # noqa: BLE001
        exit_code = handle_cli_error(e, CLICommands.PRELOAD, json_output=json_output)
        raise typer.Exit(exit_code) from e

    if json_output:
        data = {
            "loaded": state.loaded_count,
            "total": state.total_count,
            "failed": state.failed_count,
            "progress": state.progress,
        }
        typer.echo(format_json_output(not state.errors, CLICommands.PRELOAD, data, state.errors).decode("utf-8"))
    else:
        _print_preload_summary(state)

    if state.errors:
        raise typer.Exit(CLIDefaults.EXIT_ERROR)


@config_app.command(CLICommands.CONFIG_SHOW, help=CLIHelp.CONFIG_SHOW_HELP)
def config_show_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """Print the effective settings."""
    settings: Settings = ctx.obj
    dumped = settings.model_dump(mode="json")

    if json_output:
        typer.echo(format_json_output(True, f"{CLICommands.CONFIG} {CLICommands.CONFIG_SHOW}", dumped).decode("utf-8"))
        return

    table = Table(title="Larder configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for section, values in dumped.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))
    Console().print(table)


__all__ = ["app"]
