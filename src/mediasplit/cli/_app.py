"""App configuration, callbacks, and shared types for the CLI."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version

import typer

from mediasplit.exceptions import MetadataFormatError
from mediasplit.planner import parse_metadata_pairs
from mediasplit.ui.core import console

logger = logging.getLogger(__name__)


# =============================================================================
# Version
# =============================================================================


def get_version() -> str:
    """Get the installed mediasplit version, falling back to ``__version__``."""
    try:
        return version("mediasplit")
    except PackageNotFoundError:
        from mediasplit import __version__

        return __version__


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[title]mediasplit[/] [highlight]v{get_version()}[/]")
        raise typer.Exit()


# =============================================================================
# Validation
# =============================================================================


def metadata_callback(value: list[str] | None) -> list[str] | None:
    """Reject malformed ``key=value`` entries at parse time."""
    if not value:
        return value
    try:
        parse_metadata_pairs(value)
    except MetadataFormatError as e:
        raise typer.BadParameter(e.message) from e
    return value


# =============================================================================
# App Factory
# =============================================================================


MAIN_EPILOG = """
[bold cyan]Template format:[/]
  [dim]One track per line, with a time marker anywhere in the line:[/]
  [00:00] Intro
  [01:30] Second track          [dim]# ends where the next line starts[/]
  [1:02:03.5 - 1:05:00] Bonus   [dim]# explicit range[/]

[bold cyan]Examples:[/]
  mediasplit -i album.flac -t tracks.txt -f m4a
  mediasplit -i "https://youtu.be/XXXX" -a -o out -m artist=Someone
  mediasplit -i live.mp3 -s "[00:00] One" -s "[03:10] Two"
"""


def make_app() -> typer.Typer:
    """Create and configure the Typer application."""
    return typer.Typer(
        name="mediasplit",
        help="Split one audio/video file (or URL) into tracks using a timestamp template",
        epilog=MAIN_EPILOG,
        rich_markup_mode="rich",
        pretty_exceptions_enable=True,
        pretty_exceptions_show_locals=False,
        no_args_is_help=False,
        add_completion=False,
        context_settings={"help_option_names": ["-h", "--help"]},
    )
