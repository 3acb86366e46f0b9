"""Bounded-concurrency dispatch of a section plan.

Every section in the plan becomes one job. Jobs are admitted in plan order to
a fixed-size worker pool, so at most ``concurrency`` run at once; they finish
in whatever order the transcoder allows. A failing job never cancels its
siblings. Once everything has finished, the first failure in plan order (not
completion order) is raised.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from mediasplit.events import AfterDispatch, BeforeDispatch, DispatchFailed, EventBus, PlanReady
from mediasplit.exceptions import ConfigurationError, JobFailedError
from mediasplit.planner import Plan, Section

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3

RunJob = Callable[[Section, int], None]


class JobStatus(str, Enum):
    """Lifecycle state of a dispatch job."""

    pending = "pending"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"


@dataclass
class Job:
    """Runtime record pairing a section with its execution state."""

    section: Section
    status: JobStatus = JobStatus.pending
    error: JobFailedError | None = None

    @property
    def index(self) -> int:
        return self.section.index


class DispatchScheduler:
    """Run one job per section with a concurrency limit.

    Example:
        scheduler = DispatchScheduler(concurrency=2, events=bus)
        scheduler.dispatch(plan, runner)  # raises JobFailedError on failure
    """

    def __init__(self, concurrency: int = DEFAULT_CONCURRENCY, events: EventBus | None = None):
        if concurrency < 1:
            raise ConfigurationError(
                f"Concurrency must be at least 1, got {concurrency}", field="concurrency"
            )
        self.concurrency = concurrency
        self.events = events or EventBus()
        self._lock = threading.Lock()
        self._in_flight = 0
        self.peak_in_flight = 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def dispatch(self, plan: Plan, run_job: RunJob) -> Plan:
        """
        Execute ``run_job`` once per section.

        Args:
            plan: Sections to run, already time-sorted
            run_job: Callable ``(section, index) -> None`` raising on failure

        Returns:
            The same plan, once every job succeeded

        Raises:
            JobFailedError: First failed section in plan order, after all jobs
                finished. ``failures`` lists every failure in plan order.
        """
        self.events.publish(PlanReady(sections=plan))

        jobs = [Job(section=section) for section in plan]
        if not jobs:
            return plan

        logger.info(
            "Dispatching %d section(s) with concurrency %d", len(jobs), self.concurrency
        )

        workers = min(self.concurrency, len(jobs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mediasplit") as pool:
            futures = [pool.submit(self._execute, job, run_job) for job in jobs]
            for future in futures:
                future.result()

        failures = [job.error for job in jobs if job.error is not None]
        if failures:
            first = failures[0]
            first.failures = failures
            logger.error(
                "%d of %d section(s) failed; first: %s", len(failures), len(jobs), first
            )
            raise first

        logger.info("All %d section(s) finished", len(jobs))
        return plan

    def _acquire_slot(self) -> None:
        with self._lock:
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)

    def _release_slot(self) -> None:
        with self._lock:
            self._in_flight -= 1

    def _execute(self, job: Job, run_job: RunJob) -> None:
        """Run a single job. Never raises; failures are stored on the job."""
        section = job.section
        self._acquire_slot()
        job.status = JobStatus.running
        try:
            self.events.publish(BeforeDispatch(section=section, index=job.index))
            run_job(section, job.index)
            self.events.publish(AfterDispatch(section=section, index=job.index))
        except Exception as e:
            job.status = JobStatus.failed
            error = e if isinstance(e, JobFailedError) else JobFailedError(section, e)
            job.error = error
            logger.warning("Section %d (%s) failed: %s", job.index, section.output_name, e)
            self._publish_failure(job, error)
        else:
            job.status = JobStatus.succeeded
        finally:
            self._release_slot()

    def _publish_failure(self, job: Job, error: JobFailedError) -> None:
        try:
            self.events.publish(
                DispatchFailed(section=job.section, index=job.index, error=error.cause)
            )
        except Exception:
            # job.error stays the reported failure
            logger.exception("DispatchFailed handler raised for section %d", job.index)
