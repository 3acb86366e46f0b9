"""Section planning: template lines -> sorted, indexed plan.

Each template line becomes one output track. A line either carries its own
``[START - END]`` range or just a ``[START]`` marker, in which case the track
ends where the next line starts (or at the end of the source for the last
line).

Example:
    >>> plan = plan_sections(["[00:00] Intro", "[01:30] Outro"], "m4a")
    >>> [(s.index, s.output_name, str(s.start), s.end and str(s.end)) for s in plan]
    [(1, 'Intro.m4a', '00:00', '01:30'), (2, 'Outro.m4a', '01:30', None)]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import overload

from mediasplit.exceptions import MalformedTemplateError, MetadataFormatError, TemplateNotFoundError
from mediasplit.timecode import NoTimeMarkerError, TimeMarker, TimeRange, find_time_marker
from mediasplit.utils.paths import safe_filename

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "mp3"


@dataclass
class Section:
    """One planned output track.

    Attributes:
        track_name: Template line with its time marker removed
        output_name: Filesystem-safe file name, extension included
        start: Where the track starts in the source
        end: Where it ends, or None for "until the end of the source"
        line_number: 1-based line in the original template
        index: 1-based position in the time-sorted plan (track number)
        metadata: Ordered tag mapping written to the output file
    """

    track_name: str
    output_name: str
    start: TimeRange
    end: TimeRange | None = None
    line_number: int = 0
    index: int = 0
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def duration(self) -> float | None:
        """Length in seconds, or None when the section runs to the end."""
        if self.end is None:
            return None
        return self.end.total_seconds - self.start.total_seconds

    def build_metadata(self, global_metadata: Mapping[str, str] | None = None) -> dict[str, str]:
        """Merge user metadata with the per-track defaults.

        User-supplied keys win; ``title`` and ``track`` only fill gaps.
        """
        merged = {str(k): str(v) for k, v in (global_metadata or {}).items()}
        merged.setdefault("title", self.track_name)
        merged.setdefault("track", str(self.index))
        self.metadata = merged
        return merged


@dataclass(frozen=True)
class Plan(Sequence[Section]):
    """Time-sorted, immutable sequence of sections."""

    sections: tuple[Section, ...] = ()

    @overload
    def __getitem__(self, item: int) -> Section: ...

    @overload
    def __getitem__(self, item: slice) -> Sequence[Section]: ...

    def __getitem__(self, item: int | slice) -> Section | Sequence[Section]:
        return self.sections[item]

    def __len__(self) -> int:
        return len(self.sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    @property
    def output_names(self) -> list[str]:
        return [s.output_name for s in self.sections]


def normalize_format(fmt: str | None) -> str:
    """Normalize an output format/extension: ``".M4A "`` -> ``"m4a"``."""
    cleaned = (fmt or "").strip().replace(".", "").lower()
    return cleaned or DEFAULT_FORMAT


def _unique_output_name(name: str, taken: set[str]) -> str:
    """Suffix repeated names as ``Intro (2).mp3`` so no two jobs share a file.

    Names are compared case-insensitively.
    """
    stem, _, extension = name.rpartition(".")
    candidate = name
    counter = 1
    while candidate.casefold() in taken:
        counter += 1
        candidate = f"{stem} ({counter}).{extension}"
    taken.add(candidate.casefold())
    return candidate


def _marker_for_line(lines: Sequence[str], line_number: int) -> TimeMarker:
    try:
        return find_time_marker(lines[line_number - 1])
    except NoTimeMarkerError:
        raise MalformedTemplateError(line_number) from None


def plan_sections(
    lines: Sequence[str],
    fmt: str | None = DEFAULT_FORMAT,
    metadata: Mapping[str, str] | None = None,
) -> Plan:
    """
    Parse template lines into a sorted, indexed plan.

    Lines are read in template order (error line numbers always refer to the
    template), then sorted by start time. Ties keep template order.

    Args:
        lines: Template lines, one section per line
        fmt: Output format/extension (e.g. "mp3", "m4a")
        metadata: Global metadata applied to every section

    Returns:
        Plan with 1-based indexes and merged metadata

    Raises:
        MalformedTemplateError: A line (or the line after it, when its end
            is inferred) lacks a valid time marker, or a range ends before
            it starts
    """
    extension = normalize_format(fmt)
    working: list[Section] = []

    for line_number, line in enumerate(lines, start=1):
        marker = _marker_for_line(lines, line_number)

        end: TimeRange | None = marker.end
        if not marker.is_range and line_number < len(lines):
            end = _marker_for_line(lines, line_number + 1).start

        if end is not None and end < marker.start:
            raise MalformedTemplateError(
                line_number,
                f"Line {line_number} ends ({end}) before it starts ({marker.start})",
            )

        track_name = marker.strip_from(line)
        stem = safe_filename(track_name) or f"track-{line_number}"
        working.append(
            Section(
                track_name=track_name,
                output_name=f"{stem}.{extension}",
                start=marker.start,
                end=end,
                line_number=line_number,
            )
        )

    # sorted() is stable, so equal starts keep template order
    ordered = sorted(working, key=lambda s: s.start.total_seconds)
    taken: set[str] = set()
    for index, section in enumerate(ordered, start=1):
        section.index = index
        section.output_name = _unique_output_name(section.output_name, taken)
        section.build_metadata(metadata)

    logger.debug("Planned %d section(s) from %d line(s)", len(ordered), len(lines))
    return Plan(tuple(ordered))


def read_template(path: str | Path) -> list[str]:
    """
    Read a template file into lines.

    The whole content is trimmed first so leading/trailing blank lines are
    ignored; blank lines in the middle are kept and will fail planning.

    Raises:
        TemplateNotFoundError: If the file cannot be read
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateNotFoundError(
            f"Unable to open template file {path}", template=path
        ) from e

    content = content.strip()
    if not content:
        return []
    return content.splitlines()


def parse_metadata_pairs(items: Iterable[str]) -> dict[str, str]:
    """
    Parse ``key=value`` strings into an ordered mapping.

    Raises:
        MetadataFormatError: If an entry is not exactly ``key=value``
    """
    parsed: dict[str, str] = {}
    for item in items:
        parts = item.split("=")
        if len(parts) != 2 or not parts[0].strip():
            raise MetadataFormatError(
                f'Wrong metadata input "{item}", expected key=value', entry=item
            )
        key, value = parts
        parsed[key.strip()] = value
    return parsed
