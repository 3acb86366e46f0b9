"""ffmpeg integration: binary lookup, argument building, job execution.

The transcoder binary is resolved through an ordered list of providers; the
first one returning a usable executable wins. Each section is then cut by one
ffmpeg process::

    ffmpeg -hide_banner -loglevel repeat+error -y [input params]
           -i INPUT -ss START [-to END] -metadata k=v ... [output params]
           OUTPUT_DIR/OUTPUT_NAME
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from mediasplit.exceptions import ExecutableNotFoundError, TranscodeError
from mediasplit.planner import Section
from mediasplit.timecode import format_timestamp
from mediasplit.utils.cmd import CmdError, format_argv, run

logger = logging.getLogger(__name__)

FFMPEG_COMMAND = "ffmpeg"

# Checked in order; FFMPEG_BINARY is shared with other media tools
FFMPEG_ENV_VARS = ("MEDIASPLIT_FFMPEG", "FFMPEG_BINARY")

WELL_KNOWN_LOCATIONS = (
    "/usr/local/bin/ffmpeg",
    "/usr/bin/ffmpeg",
    "/opt/homebrew/bin/ffmpeg",
    "/opt/local/bin/ffmpeg",
    "/snap/bin/ffmpeg",
)

BASE_ARGS = ("-hide_banner", "-loglevel", "repeat+error", "-y")

Provider = Callable[[], str | None]


# =============================================================================
# Binary lookup
# =============================================================================


def _resolve_executable(candidate: str) -> str | None:
    """Return a usable executable path for ``candidate`` or None.

    Bare command names are looked up on $PATH; anything containing a path
    separator must point at an executable file.
    """
    candidate = candidate.strip()
    if not candidate:
        return None

    if os.sep in candidate or (os.altsep and os.altsep in candidate):
        path = Path(candidate).expanduser()
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
        return None

    return shutil.which(candidate)


def configured_provider(configured: str | None) -> Provider:
    """Provider for an explicitly configured binary (CLI flag or settings)."""

    def provide() -> str | None:
        if not configured:
            return None
        found = _resolve_executable(configured)
        if found is None:
            logger.warning("Configured ffmpeg binary not usable: %s", configured)
        return found

    return provide


def environment_provider() -> str | None:
    """Provider reading MEDIASPLIT_FFMPEG, then FFMPEG_BINARY."""
    for name in FFMPEG_ENV_VARS:
        value = os.environ.get(name)
        if value:
            found = _resolve_executable(value)
            if found:
                return found
    return None


def path_provider() -> str | None:
    """Provider looking for ``ffmpeg`` on $PATH."""
    return shutil.which(FFMPEG_COMMAND)


def well_known_provider() -> str | None:
    """Provider checking common install locations outside $PATH."""
    for location in WELL_KNOWN_LOCATIONS:
        found = _resolve_executable(location)
        if found:
            return found
    return None


def default_providers(configured: str | None = None) -> list[Provider]:
    """Lookup order: configured, environment, $PATH, well-known locations."""
    return [
        configured_provider(configured),
        environment_provider,
        path_provider,
        well_known_provider,
    ]


def locate_ffmpeg(
    configured: str | None = None,
    providers: Sequence[Provider] | None = None,
) -> str:
    """
    Find the ffmpeg executable.

    Args:
        configured: Explicit binary path or command name, tried first
        providers: Override the provider list (mainly for tests)

    Returns:
        Path to the ffmpeg executable

    Raises:
        ExecutableNotFoundError: If no provider finds a usable binary
    """
    for provider in providers if providers is not None else default_providers(configured):
        found = provider()
        if found:
            logger.debug("Using ffmpeg at %s", found)
            return found
    raise ExecutableNotFoundError()


# =============================================================================
# Arguments and execution
# =============================================================================


def build_ffmpeg_args(
    input_file: str | Path,
    section: Section,
    output_dir: str | Path,
    input_params: Sequence[str] = (),
    output_params: Sequence[str] = (),
) -> list[str]:
    """
    Build ffmpeg arguments (without the binary) for one section.

    Metadata is emitted in ``section.metadata`` order, one ``-metadata``
    pair per entry.
    """
    args = [*BASE_ARGS, *input_params, "-i", str(input_file), "-ss", str(section.start)]

    if section.end is not None:
        args += ["-to", str(section.end)]

    for key, value in section.metadata.items():
        args += ["-metadata", f"{key}={value}"]

    args += list(output_params)
    args.append(str(Path(output_dir) / section.output_name))
    return args


@dataclass
class FFmpegRunner:
    """Callable job runner: cuts one section per call.

    Example:
        runner = FFmpegRunner(binary="ffmpeg", input_file=src, output_dir=out)
        scheduler.dispatch(plan, runner)
    """

    binary: str
    input_file: Path
    output_dir: Path
    input_params: Sequence[str] = field(default_factory=tuple)
    output_params: Sequence[str] = field(default_factory=tuple)
    timeout: float | None = None

    def command_for(self, section: Section) -> list[str]:
        return [
            self.binary,
            *build_ffmpeg_args(
                self.input_file,
                section,
                self.output_dir,
                self.input_params,
                self.output_params,
            ),
        ]

    def __call__(self, section: Section, index: int) -> None:
        argv = self.command_for(section)
        duration = section.duration
        logger.info(
            "Cutting %s from %s (%s)",
            section.output_name,
            format_timestamp(section.start.total_seconds),
            "to end" if duration is None else f"{duration:g}s",
        )
        logger.debug("Section %d: %s", index, format_argv(argv))
        try:
            run(argv, timeout=self.timeout)
        except CmdError as e:
            if e.timed_out:
                reason = f"ffmpeg timed out after {self.timeout:g}s"
            else:
                reason = f"ffmpeg exited with code {e.exit_code}"
            tail = "" if e.timed_out else e.stderr_tail()
            raise TranscodeError(
                f"{reason} for {section.output_name}" + (f": {tail}" if tail else ""),
                command=format_argv(argv),
                return_code=e.exit_code,
                stderr=e.stderr or None,
            ) from e
