"""Time marker parsing for section templates.

A template line carries a bracketed time marker somewhere in its text::

    [01:02:03.456] Track name
    [05:52.1 - 07:24] Another track

Timestamps follow ``[[H:]M:]S[.fraction]`` with at least minutes and seconds
present, one or two digits per field and up to four fractional digits.
Ordering is always done on total elapsed seconds, never on the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

# Candidate markers: bracketed digits/colons/dots, optionally "START - END"
MARKER_RE = re.compile(r"\[\s*([.:\d]+)(?:\s*-\s*([.:\d]+))?\s*\]")

# A single valid timestamp (H:M:S, M:S, optional fraction)
TIME_RE = re.compile(r"^(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2})(?:\.(\d{1,4}))?$")


class NoTimeMarkerError(ValueError):
    """Raised when a line has no usable time marker."""


class InvalidTimestampError(ValueError):
    """Raised when a timestamp does not follow ``[[H:]M:]S[.fraction]``."""


def to_seconds(text: str) -> float:
    """Convert a timestamp to total elapsed seconds.

    Example:
        >>> to_seconds("1:02:03.5")
        3723.5
    """
    match = TIME_RE.match(text.strip())
    if not match:
        raise InvalidTimestampError(f"Invalid timestamp: {text!r}")

    hours, minutes, seconds, fraction = match.groups()
    total = int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)
    if fraction:
        total += float(f"0.{fraction}")
    return float(total)


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``H:MM:SS.fff`` for display."""
    millis = round(seconds * 1000)
    hours, rem = divmod(millis, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours}:{minutes:02d}:{secs:02d}.{millis:03d}"


@total_ordering
@dataclass(frozen=True, eq=False)
class TimeRange:
    """A point in the source media, as written in the template.

    ``text`` is passed to ffmpeg unchanged; comparisons use ``total_seconds``
    so ``1:02:03`` equals ``01:02:03`` and ``9:00`` sorts before ``10:00``.
    """

    text: str
    total_seconds: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        text = self.text.strip()
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "total_seconds", to_seconds(text))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeRange):
            return NotImplemented
        return self.total_seconds == other.total_seconds

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TimeRange):
            return NotImplemented
        return self.total_seconds < other.total_seconds

    def __hash__(self) -> int:
        return hash(self.total_seconds)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class TimeMarker:
    """A time marker found in a template line.

    Attributes:
        raw: Exact marker substring, brackets included
        span: (start, end) offsets of ``raw`` within the line
        start: Start timestamp
        end: End timestamp for the ``[START - END]`` form, else None
    """

    raw: str
    span: tuple[int, int]
    start: TimeRange
    end: TimeRange | None = None

    @property
    def is_range(self) -> bool:
        return self.end is not None

    def strip_from(self, line: str) -> str:
        """Return ``line`` with this marker removed and whitespace trimmed."""
        begin, finish = self.span
        return (line[:begin] + line[finish:]).strip()


def parse_timestamp(text: str) -> TimeRange:
    """Parse a single timestamp, raising InvalidTimestampError."""
    return TimeRange(text)


def find_time_marker(line: str) -> TimeMarker:
    """Locate the time marker of a template line.

    When several bracketed candidates exist, the last valid one wins, so
    bracket characters elsewhere in a track name are left alone.

    Raises:
        NoTimeMarkerError: If the line has no valid marker
    """
    found: TimeMarker | None = None
    for match in MARKER_RE.finditer(line):
        start_text, end_text = match.groups()
        try:
            start = TimeRange(start_text)
            end = TimeRange(end_text) if end_text is not None else None
        except InvalidTimestampError:
            continue
        found = TimeMarker(raw=match.group(0), span=match.span(), start=start, end=end)

    if found is None:
        raise NoTimeMarkerError(f"No time marker in line: {line!r}")
    return found
