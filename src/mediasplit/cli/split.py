"""The split command: template + input -> tracks."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from mediasplit.cli._app import metadata_callback, version_callback
from mediasplit.env_settings import EnvSettings, get_env_settings, load_env_settings_from_file
from mediasplit.events import EventBus
from mediasplit.exceptions import (
    ConfigurationError,
    ExecutableNotFoundError,
    JobFailedError,
    MediaSplitError,
    OutputDirectoryError,
    TemplateNotFoundError,
)
from mediasplit.logging_setup import setup_logging
from mediasplit.planner import parse_metadata_pairs
from mediasplit.source import Quality
from mediasplit.splitter import DEFAULT_TEMPLATE, MediaSplit, make_options
from mediasplit.ui.errors import print_exception, print_failure_summary
from mediasplit.ui.messages import fatal_error
from mediasplit.ui.progress import SplitReporter

logger = logging.getLogger(__name__)

HINTS: dict[type[MediaSplitError], str] = {
    ExecutableNotFoundError: "Install ffmpeg, or point --ffmpeg / MEDIASPLIT_FFMPEG at it",
    TemplateNotFoundError: "Pass --template PATH or give sections inline with --section",
    OutputDirectoryError: "Create the directory first or choose another with --output",
}


def _hint_for(error: MediaSplitError) -> str | None:
    for error_type, hint in HINTS.items():
        if isinstance(error, error_type):
            return hint
    return None


def _load_settings(env_file: Path | None) -> EnvSettings:
    try:
        if env_file is not None:
            return load_env_settings_from_file(env_file)
        return get_env_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment settings: {e}") from e


def split(
    input_spec: Annotated[
        str,
        typer.Option("--input", "-i", help="Input media file or URL."),
    ] = "input.mp3",
    template: Annotated[
        Path,
        typer.Option("--template", "-t", help="Template file, one track per line."),
    ] = Path(DEFAULT_TEMPLATE),
    section: Annotated[
        list[str] | None,
        typer.Option(
            "--section",
            "-s",
            help="Inline template line (repeatable). Overrides --template.",
        ),
    ] = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output directory."),
    ] = Path("."),
    cache_dir: Annotated[
        Path | None,
        typer.Option(
            "--cache-dir",
            help="Where remote sources are cached. [dim]default: output dir[/]",
        ),
    ] = None,
    metadata: Annotated[
        list[str] | None,
        typer.Option(
            "--metadata",
            "-m",
            callback=metadata_callback,
            help="Metadata tag as key=value (repeatable), e.g. artist=Someone.",
        ),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option(
            "--concurrency",
            "-c",
            min=1,
            help="Max concurrent ffmpeg processes. [dim]default: 3[/]",
        ),
    ] = None,
    fmt: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Output format/extension. [dim]default: mp3[/]"),
    ] = None,
    audio_only: Annotated[
        bool,
        typer.Option("--audio-only", "-a", help="Download an audio-only stream for URLs."),
    ] = False,
    quality: Annotated[
        Quality,
        typer.Option("--quality", "-q", help="Download quality for URLs."),
    ] = Quality.highest,
    input_param: Annotated[
        list[str] | None,
        typer.Option(
            "--input-param",
            help="Extra ffmpeg argument placed before -i (repeatable).",
        ),
    ] = None,
    output_param: Annotated[
        list[str] | None,
        typer.Option(
            "--output-param",
            help="Extra ffmpeg argument placed before the output (repeatable).",
        ),
    ] = None,
    ffmpeg: Annotated[
        str | None,
        typer.Option("--ffmpeg", help="ffmpeg binary path or command name."),
    ] = None,
    cover: Annotated[
        bool,
        typer.Option(
            "--cover/--no-cover",
            help="Save the remote thumbnail next to the cached media.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose (DEBUG) logging."),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write logs (DEBUG) to this file."),
    ] = None,
    env_file: Annotated[
        Path | None,
        typer.Option("--env-file", help="Load MEDIASPLIT_* settings from a .env file."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Split a media file into tracks described by a timestamp template.

    Each template line holds a time marker such as [cyan][01:30][/] or
    [cyan][01:30 - 03:00][/]; the rest of the line becomes the track name.
    """
    try:
        settings = _load_settings(env_file)
        setup_logging(
            "DEBUG" if verbose else settings.app.log_level,
            log_file=log_file,
            quiet_console=not verbose,
        )

        options = make_options(
            input=input_spec,
            sections=section or None,
            template=template,
            output_dir=output,
            cache_dir=cache_dir or settings.split.cache_dir,
            format=fmt or settings.split.format,
            concurrency=concurrency or settings.split.concurrency,
            metadata=parse_metadata_pairs(metadata or []),
            audio_only=audio_only,
            quality=quality,
            input_params=input_param or [],
            output_params=output_param or [],
            download_cover=cover,
            ffmpeg_binary=ffmpeg or settings.transcoder.ffmpeg,
            ffmpeg_timeout=settings.transcoder.ffmpeg_timeout,
            http_timeout=settings.network.http_timeout,
            http_retries=settings.network.http_retries,
        )
        logger.debug("Options: %s", options.model_dump())

        bus = EventBus()
        with SplitReporter(bus) as reporter:
            MediaSplit(options, events=bus).run()
    except JobFailedError as e:
        print_failure_summary(e)
        fatal_error(e.message)
        raise typer.Exit(1) from e
    except MediaSplitError as e:
        logger.debug("Run failed: %s", e.details)
        if verbose:
            print_exception(e, title="Run failed", context=e.details)
        fatal_error(e.message, _hint_for(e))
        raise typer.Exit(1) from e

    reporter.print_summary(str(options.output_dir))


def register_split_command(app: typer.Typer) -> None:
    """Register the split command as the app's only command."""
    app.command(name="split")(split)
