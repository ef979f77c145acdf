"""
Rich progress bar for the preload command.

A disabled manager renders nothing, which is what ``--json`` runs use.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressManager:
    """Renders determinate tasks on stderr.

    Args:
        disabled: If True, nothing is rendered
        console: Console to render on (default: stderr)
    """

    def __init__(self, *, disabled: bool = False, console: Console | None = None) -> None:
        self.disabled = disabled
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console or Console(stderr=True),
            disable=disabled,
            expand=True,
        )

    @contextmanager
    def task(self, description: str, total: int) -> Generator[Callable[[int], None], None, None]:
        """Show a task for the duration of the block and yield its completion setter.

        Example:
            >>> with ProgressManager().task("Preloading", total=10) as update:
            ...     update(3)
        """
        if self.disabled:
            yield lambda _completed: None
            return

        task_id = self._progress.add_task(description, total=total)

        def update(completed: int) -> None:
            self._progress.update(task_id, completed=completed)

        try:
            with self._progress:
                yield update
        finally:
            self._progress.remove_task(task_id)


__all__ = ["ProgressManager"]
