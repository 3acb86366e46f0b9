"""mediasplit CLI built with Typer and Rich.

A single command: ``mediasplit [OPTIONS]``. See ``mediasplit --help``.
"""

from __future__ import annotations

from mediasplit.cli._app import get_version, make_app, metadata_callback, version_callback
from mediasplit.cli.split import register_split_command, split

app = make_app()
register_split_command(app)


def main() -> int:
    """Main entry point for the CLI."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


__all__ = [
    "app",
    "get_version",
    "main",
    "make_app",
    "metadata_callback",
    "split",
    "version_callback",
]
