"""Tests for logging_setup module."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from mediasplit.logging_setup import ROOT_LOGGER, set_console_quiet, setup_logging


@pytest.fixture(autouse=True)
def _reset_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


def _console_handler(logger: logging.Logger) -> logging.Handler:
    return next(h for h in logger.handlers if not isinstance(h, logging.FileHandler))


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_default_setup(self) -> None:
        """The package root logger gets a Rich console handler at INFO."""
        logger = setup_logging()
        assert logger.name == "mediasplit"
        assert logger.level == logging.INFO
        assert [type(h) for h in logger.handlers] == [RichHandler]

    @pytest.mark.parametrize(
        ("level", "expected"),
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("INVALID", logging.INFO)],
    )
    def test_log_levels(self, level: str, expected: int) -> None:
        """Levels are case-insensitive; unknown names fall back to INFO."""
        assert setup_logging(log_level=level).level == expected

    def test_repeated_setup_replaces_handlers(self) -> None:
        """Calling setup twice does not duplicate handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_plain_console(self) -> None:
        """rich_console=False uses a plain stream handler."""
        logger = setup_logging(rich_console=False)
        assert type(logger.handlers[0]) is logging.StreamHandler

    def test_with_log_file(self, tmp_path: Path) -> None:
        """The file handler records DEBUG even when the console is at INFO."""
        log_file = tmp_path / "nested" / "split.log"
        logger = setup_logging(log_file=log_file)

        logging.getLogger("mediasplit.scheduler").debug("Dispatching debug detail")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert "Dispatching debug detail" in content
        assert "[mediasplit.scheduler]" in content
        assert _console_handler(logger).level == logging.INFO

    def test_quiet_console(self) -> None:
        """quiet_console limits the console to warnings."""
        logger = setup_logging(quiet_console=True)
        assert _console_handler(logger).level == logging.WARNING


class TestSetConsoleQuiet:
    """Tests for set_console_quiet."""

    def test_toggle(self) -> None:
        """The console level can be switched after setup."""
        logger = setup_logging()
        set_console_quiet(True)
        assert _console_handler(logger).level == logging.WARNING
        set_console_quiet(False)
        assert _console_handler(logger).level == logging.INFO

    def test_restores_configured_level(self) -> None:
        """Leaving quiet mode returns to the level given at setup."""
        logger = setup_logging(log_level="DEBUG", quiet_console=True)
        assert _console_handler(logger).level == logging.WARNING
        set_console_quiet(False)
        assert _console_handler(logger).level == logging.DEBUG
