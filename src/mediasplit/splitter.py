"""High-level split workflow.

Ties the pieces together for one run::

    options = SplitOptions(input="album.flac", template="tracks.txt", format="m4a")
    plan = MediaSplit(options, events=bus).run()

Steps: check output dir -> plan sections -> acquire source -> locate ffmpeg ->
dispatch one ffmpeg job per section. Anything before dispatch aborts the run
immediately; dispatch failures are collected and the first (in plan order) is
raised once all jobs have finished.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from mediasplit.events import EventBus
from mediasplit.exceptions import ConfigurationError
from mediasplit.ffmpeg import FFmpegRunner, locate_ffmpeg
from mediasplit.planner import DEFAULT_FORMAT, Plan, normalize_format, plan_sections, read_template
from mediasplit.scheduler import DEFAULT_CONCURRENCY, DispatchScheduler
from mediasplit.source import (
    DEFAULT_HTTP_RETRIES,
    DEFAULT_HTTP_TIMEOUT,
    Quality,
    RemoteFetcher,
    SourceAcquirer,
)
from mediasplit.utils.paths import check_output_dir

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "templ.txt"

Locator = Callable[[str | None], str]


class SplitOptions(BaseModel):
    """Options for a single split run.

    ``sections`` (inline template lines) takes precedence over ``template``.
    """

    model_config = {"extra": "forbid"}

    input: str = Field(..., min_length=1, description="Input file path or URL")
    sections: list[str] | None = Field(default=None, description="Inline template lines")
    template: Path = Field(default=Path(DEFAULT_TEMPLATE), description="Template file")
    output_dir: Path = Field(default=Path("."), description="Where tracks are written")
    cache_dir: Path | None = Field(default=None, description="Remote source cache")
    format: str = Field(default=DEFAULT_FORMAT, description="Output format/extension")
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    metadata: dict[str, str] = Field(default_factory=dict)
    audio_only: bool = False
    quality: Quality = Quality.highest
    input_params: list[str] = Field(default_factory=list)
    output_params: list[str] = Field(default_factory=list)
    download_cover: bool = False
    ffmpeg_binary: str | None = None
    ffmpeg_timeout: float | None = Field(default=None, gt=0)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    http_retries: int = Field(default=DEFAULT_HTTP_RETRIES, ge=0)

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        return normalize_format(v)

    @model_validator(mode="after")
    def default_cache_dir(self) -> SplitOptions:
        if self.cache_dir is None:
            self.cache_dir = self.output_dir
        return self


def make_options(**kwargs: Any) -> SplitOptions:
    """Build SplitOptions, reporting validation problems as ConfigurationError."""
    try:
        return SplitOptions(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid option {field}: {first.get('msg')}" if field else str(e),
            field=field,
            details={"errors": e.errors(include_url=False)},
        ) from e


class MediaSplit:
    """Split one media source into tracks.

    Args:
        options: Run options
        events: Bus receiving progress events (a private one if omitted)
        fetcher: Remote metadata fetcher (yt-dlp if omitted)
        locator: ffmpeg lookup ``(configured) -> path``
    """

    def __init__(
        self,
        options: SplitOptions,
        events: EventBus | None = None,
        fetcher: RemoteFetcher | None = None,
        locator: Locator = locate_ffmpeg,
    ) -> None:
        self.options = options
        self.events = events or EventBus()
        self.fetcher = fetcher
        self.locator = locator

    def _acquire(self) -> Path:
        opts = self.options
        acquirer = SourceAcquirer(
            self.events,
            self.fetcher,
            audio_only=opts.audio_only,
            quality=opts.quality,
            download_cover=opts.download_cover,
            http_timeout=opts.http_timeout,
            http_retries=opts.http_retries,
        )
        try:
            return acquirer.resolve(opts.input, opts.cache_dir or opts.output_dir)
        finally:
            acquirer.close()

    def plan(self) -> Plan:
        """Read the template (or inline sections) and build the plan."""
        opts = self.options
        lines = opts.sections if opts.sections is not None else read_template(opts.template)
        return plan_sections(lines, opts.format, opts.metadata)

    def run(self) -> Plan:
        """
        Execute the whole workflow.

        Returns:
            The executed plan

        Raises:
            MediaSplitError: Any failure; dispatch failures as JobFailedError
        """
        opts = self.options
        output_dir = check_output_dir(opts.output_dir)

        # Template problems must surface before a possibly large download
        plan = self.plan()
        input_file = self._acquire()
        binary = self.locator(opts.ffmpeg_binary)

        logger.info(
            "Splitting %s into %d track(s) in %s", input_file, len(plan), output_dir
        )
        runner = FFmpegRunner(
            binary=binary,
            input_file=input_file,
            output_dir=output_dir,
            input_params=tuple(opts.input_params),
            output_params=tuple(opts.output_params),
            timeout=opts.ffmpeg_timeout,
        )
        scheduler = DispatchScheduler(opts.concurrency, self.events)
        return scheduler.dispatch(plan, runner)
