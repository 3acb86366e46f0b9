"""Shared pytest fixtures and helpers for mediasplit tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from mediasplit.env_settings import clear_env_settings_cache
from mediasplit.planner import Section
from mediasplit.source import Quality, RemoteSource
from mediasplit.timecode import TimeRange
from mediasplit.utils.cmd import CmdResult


def make_cmd_result(
    stdout: str = "",
    stderr: str = "",
    exit_code: int = 0,
    argv: tuple[str, ...] = ("ffmpeg",),
) -> CmdResult:
    """Create a CmdResult for mocking run() calls in tests."""
    return CmdResult(argv=argv, stdout=stdout, stderr=stderr, exit_code=exit_code)


def make_section(
    name: str = "Track",
    start: str = "00:00",
    end: str | None = None,
    index: int = 1,
    fmt: str = "mp3",
) -> Section:
    """Create a Section with default metadata filled in."""
    section = Section(
        track_name=name,
        output_name=f"{name}.{fmt}",
        start=TimeRange(start),
        end=TimeRange(end) if end else None,
        line_number=index,
        index=index,
    )
    section.build_metadata()
    return section


def make_remote_source(
    title: str = "Some Video",
    container: str = "webm",
    content_url: str = "https://media.example.com/video.webm",
    thumbnail_url: str | None = None,
) -> RemoteSource:
    """Create a RemoteSource pointing at a fake media URL."""
    return RemoteSource(
        id="abc123",
        title=title,
        container=container,
        content_url=content_url,
        thumbnail_url=thumbnail_url,
    )


class FakeFetcher:
    """RemoteFetcher returning a fixed source and recording calls."""

    def __init__(self, source: RemoteSource | None = None) -> None:
        self.source = source or make_remote_source()
        self.calls: list[tuple[str, bool, Quality]] = []

    def fetch_info(self, url: str, *, audio_only: bool, quality: Quality) -> RemoteSource:
        self.calls.append((url, audio_only, quality))
        return self.source


@pytest.fixture
def write_template(tmp_path: Path):
    """Write template lines to ``tmp_path/templ.txt`` and return the path."""

    def _write(lines: list[str], name: str = "templ.txt") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    """A small readable stand-in for an input media file."""
    path = tmp_path / "input.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 64)
    return path


@pytest.fixture(autouse=True)
def _fresh_env_settings() -> Iterator[None]:
    """Make every test read settings from its own environment."""
    clear_env_settings_cache()
    yield
    clear_env_settings_cache()
