"""Progress bars driven by split events.

``SplitReporter`` subscribes to an :class:`~mediasplit.events.EventBus` and
renders a download bar (bytes) and a split bar listing the tracks currently
being cut.
"""

from __future__ import annotations

import threading

from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from mediasplit.events import (
    AfterDispatch,
    BeforeDispatch,
    DispatchFailed,
    DownloadLength,
    DownloadProgress,
    EventBus,
    PlanReady,
    SourceResolved,
    WarningIssued,
)
from mediasplit.ui.core import console
from mediasplit.ui.formatting import format_size, truncate
from mediasplit.ui.messages import print_error, print_info, print_success, print_warning


def create_download_progress() -> Progress:
    """Create a Progress instance for byte downloads."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        "•",
        TransferSpeedColumn(),
        "•",
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )


def create_split_progress() -> Progress:
    """Create a Progress instance for the split jobs.

    The ``tracks`` field holds the names of in-flight tracks.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TextColumn("[track]{task.fields[tracks]}"),
        console=console,
        transient=False,
    )


class SplitReporter:
    """Render run progress from events.

    Example:
        bus = EventBus()
        with SplitReporter(bus):
            MediaSplit(options, events=bus).run()
    """

    def __init__(self, events: EventBus) -> None:
        self.events = events
        self._lock = threading.Lock()
        self._running: dict[int, str] = {}
        self._download: Progress | None = None
        self._download_task: TaskID | None = None
        self._split: Progress | None = None
        self._split_task: TaskID | None = None
        self.completed = 0
        self.failed = 0

        self._subscriptions = [
            (SourceResolved, self.on_source_resolved),
            (DownloadLength, self.on_download_length),
            (DownloadProgress, self.on_download_progress),
            (PlanReady, self.on_plan_ready),
            (BeforeDispatch, self.on_before_dispatch),
            (AfterDispatch, self.on_after_dispatch),
            (DispatchFailed, self.on_dispatch_failed),
            (WarningIssued, self.on_warning),
        ]

    def __enter__(self) -> SplitReporter:
        for event_type, handler in self._subscriptions:
            self.events.subscribe(event_type, handler)
        return self

    def __exit__(self, *exc_info: object) -> None:
        for event_type, handler in self._subscriptions:
            self.events.unsubscribe(event_type, handler)
        self._stop_download()
        if self._split is not None:
            self._split.stop()
            self._split = None

    # -------------------------------------------------------------------------
    # Source
    # -------------------------------------------------------------------------

    def on_source_resolved(self, event: SourceResolved) -> None:
        if event.source is None:
            return
        if event.cached:
            print_info(f"Found cached video on [path]{escape(str(event.path))}[/]")
        else:
            print_info(f"Found video! saving to [path]{escape(str(event.path))}[/]")

    def on_download_length(self, event: DownloadLength) -> None:
        self._download = create_download_progress()
        self._download.start()
        self._download_task = self._download.add_task(
            f"[cyan]Downloading[/] [size]{format_size(event.total)}[/]", total=event.total or None
        )

    def on_download_progress(self, event: DownloadProgress) -> None:
        if self._download is not None and self._download_task is not None:
            self._download.update(self._download_task, completed=event.downloaded)

    def _stop_download(self) -> None:
        if self._download is not None:
            self._download.stop()
            self._download = None
            self._download_task = None

    # -------------------------------------------------------------------------
    # Split
    # -------------------------------------------------------------------------

    def on_plan_ready(self, event: PlanReady) -> None:
        self._stop_download()
        if not event.sections:
            print_warning("Template has no sections, nothing to split")
            return
        self._split = create_split_progress()
        self._split.start()
        self._split_task = self._split.add_task(
            "[cyan]Splitting[/]", total=len(event.sections), tracks=""
        )

    def _refresh(self) -> None:
        if self._split is None or self._split_task is None:
            return
        names = ", ".join(
            escape(truncate(name, 30)) for _, name in sorted(self._running.items())
        )
        self._split.update(self._split_task, completed=self.completed + self.failed, tracks=names)

    def on_before_dispatch(self, event: BeforeDispatch) -> None:
        with self._lock:
            self._running[event.index] = event.section.output_name
            self._refresh()

    def on_after_dispatch(self, event: AfterDispatch) -> None:
        with self._lock:
            self._running.pop(event.index, None)
            self.completed += 1
            self._refresh()

    def on_dispatch_failed(self, event: DispatchFailed) -> None:
        with self._lock:
            self._running.pop(event.index, None)
            self.failed += 1
            self._refresh()
        print_error(f"[track]{escape(event.section.output_name)}[/]: {escape(str(event.error))}")

    def on_warning(self, event: WarningIssued) -> None:
        print_warning(escape(event.message))

    def print_summary(self, output_dir: str) -> None:
        """Print the closing success line."""
        print_success(
            f"Split {self.completed} track(s) into [path]{escape(output_dir)}[/]"
        )

