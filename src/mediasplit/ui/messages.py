"""Simple message printing helpers for the mediasplit UI."""

from __future__ import annotations

from rich.markup import escape

from mediasplit.ui.core import console, err_console


def print_success(message: str) -> None:
    """Print a success message with checkmark.

    Example:
        >>> print_success("Split complete")
          ✓ Split complete
    """
    console.print(f"  [success]✓[/] {message}")


def print_error(message: str) -> None:
    """Print an error message with X."""
    err_console.print(f"  [error]✗[/] {message}")


def print_warning(message: str) -> None:
    """Print a warning message.

    Example:
        >>> print_warning("Unable to download cover")
          ! Unable to download cover
    """
    err_console.print(f"  [warning]![/] {message}")


def print_info(message: str) -> None:
    """Print an info message.

    Example:
        >>> print_info("Found 12 sections")
          → Found 12 sections
    """
    console.print(f"  [info]→[/] {message}")


def fatal_error(message: str, hint: str | None = None) -> None:
    """Print a fatal error (and an optional hint) to stderr.

    Example:
        >>> fatal_error("Unable to open template file templ.txt", "Use --template")
    """
    err_console.print(f"\n[error]Error:[/] {escape(message)}")
    if hint:
        err_console.print(f"[dim]Hint: {escape(hint)}[/]")
