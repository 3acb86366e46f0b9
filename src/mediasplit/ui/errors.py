"""Error formatting for the mediasplit UI."""

from __future__ import annotations

from typing import Any

from rich.markup import escape
from rich.table import Table
from rich.traceback import Traceback

from mediasplit.exceptions import JobFailedError
from mediasplit.ui.core import err_console
from mediasplit.ui.formatting import truncate


def print_exception(
    error: Exception,
    title: str = "Error",
    context: dict[str, Any] | None = None,
    show_traceback: bool = True,
) -> None:
    """Print a formatted exception with context.

    Args:
        error: The exception to display
        title: Error title/header
        context: Optional dict of contextual info to display
        show_traceback: Whether to show full traceback (default True)
    """
    err_console.print(f"\n[error]{title}[/]")
    err_console.print(f"[error]{type(error).__name__}:[/] {escape(str(error))}")

    if context:
        err_console.print()
        for key, value in context.items():
            err_console.print(f"  [dim]{key}:[/] {escape(str(value))}")

    if show_traceback:
        err_console.print()
        err_console.print(
            Traceback.from_exception(
                type(error),
                error,
                error.__traceback__,
                show_locals=False,
                max_frames=10,
            )
        )


def print_failure_summary(error: JobFailedError) -> None:
    """Print a table of every failed section, in plan order."""
    if len(error.failures) < 2:
        return

    table = Table(title="[error]Failed tracks[/]", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Track", style="track")
    table.add_column("Error", style="red", overflow="fold")

    for failure in error.failures:
        table.add_row(
            str(failure.section.index),
            truncate(failure.section.output_name, 40),
            truncate(str(failure.cause), 80),
        )

    err_console.print(table)
