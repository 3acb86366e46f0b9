"""Logging configuration for mediasplit.

Everything logs under the ``mediasplit`` logger: the console gets a Rich
handler on stderr (so it interleaves cleanly with progress bars on stdout)
and an optional log file records DEBUG output including worker thread names.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "mediasplit"

FILE_FORMAT = "%(asctime)s | %(levelname)-5s | [%(name)s] %(threadName)s %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_console_handler: logging.Handler | None = None
_console_level = logging.INFO


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _make_console_handler(rich_console: bool) -> logging.Handler:
    if not rich_console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        return handler
    # Track names may contain brackets, so no markup
    return RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )


def _make_file_handler(log_file: Path | str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | str | None = None,
    rich_console: bool = True,
    quiet_console: bool = False,
) -> logging.Logger:
    """
    Configure the ``mediasplit`` logger. Safe to call repeatedly.

    Args:
        log_level: Console level name; unknown names mean INFO
        log_file: Also write DEBUG output to this file
        rich_console: Use RichHandler instead of a plain stream handler
        quiet_console: Show only WARNING+ on the console for now
            (see :func:`set_console_quiet`)

    Returns:
        The package root logger
    """
    global _console_handler, _console_level
    level = _parse_level(log_level)

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if log_file else level)

    _console_level = level
    _console_handler = _make_console_handler(rich_console)
    _console_handler.setLevel(logging.WARNING if quiet_console else level)
    logger.addHandler(_console_handler)

    if log_file:
        logger.addHandler(_make_file_handler(log_file))

    return logger


def set_console_quiet(quiet: bool = True) -> None:
    """Limit the console to warnings, or restore the configured level.

    The log file (if any) is unaffected.
    """
    if _console_handler is not None:
        _console_handler.setLevel(logging.WARNING if quiet else _console_level)
