"""Lifecycle events and a small publish/subscribe bus.

Observers (progress bars, loggers, tests) subscribe to typed event classes;
core components publish without knowing who listens.

Emission order across a full run:
    SourceResolved -> [DownloadLength -> DownloadProgress*] -> PlanReady
    -> BeforeDispatch / AfterDispatch | DispatchFailed (interleaved per job)

Handlers run synchronously on the publishing thread. Dispatch events are
published from worker threads, so handlers must be thread-safe.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from mediasplit.planner import Section
    from mediasplit.source import RemoteSource

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")


@dataclass
class Event:
    """Base class for all events. Subscribe to it to receive everything."""


@dataclass
class SourceResolved(Event):
    """The working input file is known. Published exactly once per run."""

    path: Path
    cached: bool = False
    source: RemoteSource | None = None


@dataclass
class DownloadLength(Event):
    """A remote download is starting; ``total`` is its size in bytes."""

    total: int


@dataclass
class DownloadProgress(Event):
    """A chunk of the remote download was written."""

    chunk: int
    downloaded: int
    total: int


@dataclass
class PlanReady(Event):
    """The plan was built and dispatch is about to start."""

    sections: Sequence[Section]


@dataclass
class BeforeDispatch(Event):
    """A job is about to start. Handlers may amend ``section.metadata``."""

    section: Section
    index: int


@dataclass
class AfterDispatch(Event):
    """A job finished successfully."""

    section: Section
    index: int


@dataclass
class DispatchFailed(Event):
    """A job failed. Siblings keep running."""

    section: Section
    index: int
    error: BaseException


@dataclass
class WarningIssued(Event):
    """Non-fatal problem worth telling the user about."""

    message: str


Handler = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe hub keyed by event class.

    Example:
        bus = EventBus()
        bus.subscribe(AfterDispatch, lambda e: print(e.section.output_name))
        bus.publish(AfterDispatch(section=section, index=1))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Register ``handler`` for ``event_type`` and its subclasses."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
        return False

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler, most specific type first.

        Handler exceptions propagate to the publisher.
        """
        with self._lock:
            targets = [
                handler
                for cls in type(event).__mro__
                if cls in self._handlers
                for handler in list(self._handlers[cls])
            ]

        logger.debug("Event %s -> %d handler(s)", type(event).__name__, len(targets))
        for handler in targets:
            handler(event)
