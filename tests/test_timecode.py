"""Tests for time marker parsing."""

from __future__ import annotations

import pytest

from mediasplit.timecode import (
    InvalidTimestampError,
    NoTimeMarkerError,
    TimeRange,
    find_time_marker,
    format_timestamp,
    parse_timestamp,
    to_seconds,
)


class TestToSeconds:
    """Tests for timestamp -> seconds conversion."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("00:00", 0.0),
            ("01:30", 90.0),
            ("1:30", 90.0),
            ("03:28.222", 208.222),
            ("05:52.1", 352.1),
            ("1:02:03", 3723.0),
            ("01:02:03.5", 3723.5),
        ],
    )
    def test_valid_timestamps(self, text: str, expected: float) -> None:
        """Valid timestamps convert to total elapsed seconds."""
        assert to_seconds(text) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "text",
        ["", "30", "00:AB", "1:2:3:4", "123:00", "00:00.12345", "00:00.", ":30"],
    )
    def test_invalid_timestamps(self, text: str) -> None:
        """Malformed timestamps are rejected."""
        with pytest.raises(InvalidTimestampError):
            to_seconds(text)

    def test_invalid_timestamp_is_value_error(self) -> None:
        """Parse errors are ValueErrors so generic callers can catch them."""
        with pytest.raises(ValueError):
            parse_timestamp("nope")


class TestTimeRange:
    """Tests for TimeRange comparison semantics."""

    def test_compares_numerically_across_hour_widths(self) -> None:
        """Hour field width does not affect equality or order."""
        assert TimeRange("1:02:03") == TimeRange("01:02:03")
        assert TimeRange("9:00") < TimeRange("10:00")
        assert TimeRange("59:59") < TimeRange("1:00:00")

    def test_keeps_original_text(self) -> None:
        """The text handed to ffmpeg is the text from the template."""
        value = TimeRange(" 03:28.222 ")
        assert str(value) == "03:28.222"
        assert value.total_seconds == pytest.approx(208.222)

    def test_hashable_by_value(self) -> None:
        """Equal timestamps hash equally."""
        assert len({TimeRange("1:00"), TimeRange("01:00"), TimeRange("0:01:00")}) == 1

    def test_not_equal_to_other_types(self) -> None:
        """Comparison with non-TimeRange objects is not supported."""
        assert TimeRange("00:10") != "00:10"


class TestFindTimeMarker:
    """Tests for locating markers in template lines."""

    def test_single_marker(self) -> None:
        """A ``[START]`` marker has no end."""
        marker = find_time_marker("[01:30] bar")
        assert str(marker.start) == "01:30"
        assert marker.end is None
        assert not marker.is_range
        assert marker.strip_from("[01:30] bar") == "bar"

    def test_range_marker(self) -> None:
        """A ``[START - END]`` marker carries both ends."""
        line = "[05:52.1 - 07:24] Qux - abc"
        marker = find_time_marker(line)
        assert str(marker.start) == "05:52.1"
        assert str(marker.end) == "07:24"
        assert marker.is_range
        assert marker.strip_from(line) == "Qux - abc"

    def test_marker_anywhere_in_line(self) -> None:
        """Markers are not required at the start of the line."""
        line = "Intro [00:10] (live)"
        marker = find_time_marker(line)
        assert str(marker.start) == "00:10"
        assert marker.strip_from(line) == "Intro  (live)"

    def test_brackets_in_name_are_kept(self) -> None:
        """Non-time brackets in the track name stay untouched."""
        line = "[07:50] -[Song - tag][name]"
        assert find_time_marker(line).strip_from(line) == "-[Song - tag][name]"

    def test_last_valid_marker_wins(self) -> None:
        """With several valid markers, the last one is used."""
        line = "[00:10] Remix of [03:00] original"
        marker = find_time_marker(line)
        assert str(marker.start) == "03:00"
        assert marker.strip_from(line) == "[00:10] Remix of  original"

    def test_invalid_candidates_are_skipped(self) -> None:
        """A bracketed number that is not a timestamp is ignored."""
        line = "[01:00] Track [2024]"
        assert str(find_time_marker(line).start) == "01:00"

    @pytest.mark.parametrize("line", ["[00:AB.!] FOO", "no marker", "[1] x", ""])
    def test_no_marker(self, line: str) -> None:
        """Lines without a valid marker raise NoTimeMarkerError."""
        with pytest.raises(NoTimeMarkerError):
            find_time_marker(line)


class TestFormatTimestamp:
    """Tests for display formatting."""

    def test_format(self) -> None:
        """Seconds are rendered as H:MM:SS.fff."""
        assert format_timestamp(3723.5) == "1:02:03.500"
        assert format_timestamp(0) == "0:00:00.000"

    def test_round_trip_through_parser(self) -> None:
        """Formatted timestamps parse back to the same value."""
        assert to_seconds(format_timestamp(208.222)) == pytest.approx(208.222)
