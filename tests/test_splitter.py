"""Tests for the high-level split workflow."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest import mock

import pytest

from mediasplit.events import (
    AfterDispatch,
    BeforeDispatch,
    Event,
    EventBus,
    PlanReady,
    SourceResolved,
)
from mediasplit.exceptions import (
    ConfigurationError,
    ExecutableNotFoundError,
    JobFailedError,
    MalformedTemplateError,
    OutputDirectoryError,
    TemplateNotFoundError,
    TranscodeError,
    UnreadableInputError,
)
from mediasplit.source import Quality
from mediasplit.splitter import MediaSplit, SplitOptions, make_options
from mediasplit.utils.cmd import CmdError

from tests.conftest import FakeFetcher, make_cmd_result

LINES = ["[00:00] One", "[01:00] Two", "[02:00 - 02:30] Three"]


def _locator(configured: str | None) -> str:
    return configured or "/usr/bin/ffmpeg"


def _recording_bus() -> tuple[EventBus, list[Event]]:
    bus = EventBus()
    events: list[Event] = []
    lock = threading.Lock()

    def record(event: Event) -> None:
        with lock:
            events.append(event)

    bus.subscribe(Event, record)
    return bus, events


class TestSplitOptions:
    """Tests for SplitOptions validation and defaults."""

    def test_defaults(self) -> None:
        """Only the input is required; cache dir follows the output dir."""
        options = SplitOptions(input="a.mp3", output_dir=Path("out"))
        assert options.template == Path("templ.txt")
        assert options.format == "mp3"
        assert options.concurrency == 3
        assert options.quality is Quality.highest
        assert options.cache_dir == Path("out")
        assert options.download_cover is False

    def test_explicit_cache_dir(self) -> None:
        """An explicit cache dir is kept."""
        options = SplitOptions(input="a.mp3", cache_dir=Path("/tmp/cache"))
        assert options.cache_dir == Path("/tmp/cache")

    def test_format_normalized(self) -> None:
        """Formats are normalized like on the command line."""
        assert SplitOptions(input="a.mp3", format=".FLAC").format == "flac"

    def test_make_options_reports_configuration_error(self) -> None:
        """Validation problems surface as ConfigurationError."""
        with pytest.raises(ConfigurationError, match="concurrency") as exc:
            make_options(input="a.mp3", concurrency=0)
        assert exc.value.field == "concurrency"

    def test_unknown_option_rejected(self) -> None:
        """Typos in option names are errors."""
        with pytest.raises(ConfigurationError):
            make_options(input="a.mp3", concurency=2)


class TestMediaSplit:
    """Tests for MediaSplit.run()."""

    def test_full_run(self, media_file: Path, tmp_path: Path) -> None:
        """Every section is cut with the located binary, events in order."""
        out = tmp_path / "out"
        out.mkdir()
        bus, events = _recording_bus()
        options = SplitOptions(
            input=str(media_file),
            sections=LINES,
            output_dir=out,
            format="m4a",
            metadata={"artist": "Band"},
            concurrency=2,
        )

        with mock.patch("mediasplit.ffmpeg.run", return_value=make_cmd_result()) as run:
            plan = MediaSplit(options, events=bus, locator=_locator).run()

        assert plan.output_names == ["One.m4a", "Two.m4a", "Three.m4a"]
        assert run.call_count == 3
        commands = sorted(call.args[0] for call in run.call_args_list)
        assert all(argv[0] == "/usr/bin/ffmpeg" for argv in commands)
        assert {argv[-1] for argv in commands} == {
            str(out / "One.m4a"),
            str(out / "Two.m4a"),
            str(out / "Three.m4a"),
        }
        assert all("artist=Band" in argv for argv in commands)

        assert isinstance(events[0], SourceResolved)
        assert events[0].path == media_file
        assert isinstance(events[1], PlanReady)
        assert sum(isinstance(e, BeforeDispatch) for e in events) == 3
        assert sum(isinstance(e, AfterDispatch) for e in events) == 3

    def test_template_file(self, media_file: Path, tmp_path: Path, write_template) -> None:
        """Without inline sections the template file is read."""
        template = write_template(LINES)
        options = SplitOptions(input=str(media_file), template=template, output_dir=tmp_path)

        with mock.patch("mediasplit.ffmpeg.run", return_value=make_cmd_result()):
            plan = MediaSplit(options, locator=_locator).run()

        assert len(plan) == 3

    def test_missing_template(self, media_file: Path, tmp_path: Path) -> None:
        """A missing template aborts before any ffmpeg call."""
        options = SplitOptions(
            input=str(media_file), template=tmp_path / "missing.txt", output_dir=tmp_path
        )
        with (
            mock.patch("mediasplit.ffmpeg.run") as run,
            pytest.raises(TemplateNotFoundError),
        ):
            MediaSplit(options, locator=_locator).run()
        run.assert_not_called()

    def test_missing_template_before_remote_fetch(self, tmp_path: Path) -> None:
        """A missing template is reported before the remote source is touched."""
        fetcher = FakeFetcher()
        options = SplitOptions(
            input="https://www.youtube.com/watch?v=abc",
            template=tmp_path / "missing.txt",
            output_dir=tmp_path,
        )
        with (
            mock.patch("mediasplit.source.httpx.Client") as client,
            pytest.raises(TemplateNotFoundError),
        ):
            MediaSplit(options, fetcher=fetcher, locator=_locator).run()

        assert fetcher.calls == []
        client.assert_not_called()
        assert list(tmp_path.iterdir()) == []

    def test_output_dir_checked_first(self, tmp_path: Path) -> None:
        """A bad output directory fails before the input is looked at."""
        fetcher = FakeFetcher()
        options = SplitOptions(
            input="https://youtu.be/abc", sections=LINES, output_dir=tmp_path / "nope"
        )
        with pytest.raises(OutputDirectoryError):
            MediaSplit(options, fetcher=fetcher, locator=_locator).run()
        assert fetcher.calls == []

    def test_unreadable_input(self, tmp_path: Path) -> None:
        """A missing local input is fatal."""
        options = SplitOptions(
            input=str(tmp_path / "gone.mp3"), sections=LINES, output_dir=tmp_path
        )
        with pytest.raises(UnreadableInputError):
            MediaSplit(options, locator=_locator).run()

    def test_malformed_template_aborts(self, media_file: Path, tmp_path: Path) -> None:
        """Planning errors abort before dispatch."""
        options = SplitOptions(
            input=str(media_file), sections=["[00:00] ok", "[xx] bad"], output_dir=tmp_path
        )
        locator = mock.Mock(side_effect=_locator)
        with pytest.raises(MalformedTemplateError, match="Line 2"):
            MediaSplit(options, locator=locator).run()
        locator.assert_not_called()

    def test_ffmpeg_missing(self, media_file: Path, tmp_path: Path) -> None:
        """Locator failures abort before dispatch."""
        options = SplitOptions(input=str(media_file), sections=LINES, output_dir=tmp_path)
        bus, events = _recording_bus()

        def no_ffmpeg(configured: str | None) -> str:
            raise ExecutableNotFoundError()

        with pytest.raises(ExecutableNotFoundError):
            MediaSplit(options, events=bus, locator=no_ffmpeg).run()
        assert not any(isinstance(e, PlanReady) for e in events)

    def test_configured_binary_passed_to_locator(self, media_file: Path, tmp_path: Path) -> None:
        """ffmpeg_binary is handed to the locator."""
        options = SplitOptions(
            input=str(media_file),
            sections=LINES[:1],
            output_dir=tmp_path,
            ffmpeg_binary="/opt/ffmpeg",
        )
        with mock.patch("mediasplit.ffmpeg.run", return_value=make_cmd_result()) as run:
            MediaSplit(options, locator=_locator).run()
        assert run.call_args.args[0][0] == "/opt/ffmpeg"

    def test_job_failure(self, media_file: Path, tmp_path: Path) -> None:
        """A failed section surfaces as JobFailedError wrapping TranscodeError."""
        options = SplitOptions(input=str(media_file), sections=LINES, output_dir=tmp_path)

        def fake_run(argv: list[str], **kwargs: object):
            if argv[-1].endswith("Two.mp3"):
                raise CmdError(argv=argv, exit_code=1, stdout="", stderr="broken")
            return make_cmd_result()

        with (
            mock.patch("mediasplit.ffmpeg.run", side_effect=fake_run),
            pytest.raises(JobFailedError) as exc,
        ):
            MediaSplit(options, locator=_locator).run()

        assert exc.value.section.output_name == "Two.mp3"
        assert isinstance(exc.value.cause, TranscodeError)
        assert len(exc.value.failures) == 1

    def test_remote_input_uses_cache_dir(self, tmp_path: Path) -> None:
        """Remote sources are resolved into the cache dir."""
        cache = tmp_path / "cache"
        options = SplitOptions(
            input="https://youtu.be/abc",
            sections=LINES[:1],
            output_dir=tmp_path,
            cache_dir=cache,
            audio_only=True,
        )
        resolved = cache / "Some Video.webm"

        with (
            mock.patch(
                "mediasplit.splitter.SourceAcquirer.resolve", return_value=resolved
            ) as resolve,
            mock.patch("mediasplit.ffmpeg.run", return_value=make_cmd_result()) as run,
        ):
            MediaSplit(options, fetcher=FakeFetcher(), locator=_locator).run()

        resolve.assert_called_once_with("https://youtu.be/abc", cache)
        argv = run.call_args.args[0]
        assert argv[argv.index("-i") + 1] == str(resolved)
