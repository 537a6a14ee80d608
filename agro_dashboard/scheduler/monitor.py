"""Polling state machine following a backend scrape job."""

from __future__ import annotations

import time
from enum import Enum
from threading import Event, Lock
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..client import ApiClient
from ..config.models import DEFAULT_POLL_INTERVAL
from ..engine.models import ScrapeStatus
from ..errors import ApiError, ScrapeAlreadyRunning
from ..logging_conf import configure_logging

POLL_JOB_ID = "scrape::status"
STOPPED_MESSAGE = "Scraping stopped! Showing results scraped so far."
COMPLETED_MESSAGE = "Scraping completed."


class MonitorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class ScrapeJobMonitor:
    """Start a backend scrape and poll its status until it reports completion.

    Polling runs as an APScheduler interval job on a background thread; the
    caller may block on :meth:`wait` or keep working. Completion (or a manual
    :meth:`stop`) cancels the job, calls ``on_refresh`` so the record store
    picks up the new rows, then hands the message to ``on_complete``.
    """

    def __init__(
        self,
        client: ApiClient,
        on_refresh: Callable[[], None],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_duration: float | None = None,
        on_complete: Callable[[str], None] | None = None,
        scheduler=None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.on_refresh = on_refresh
        self.on_complete = on_complete
        self.interval = interval
        self.max_duration = max_duration
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = configure_logging().bind(component="scrape_monitor")
        self.state = MonitorState.IDLE
        self.last_message = ""
        self.status_message = ""
        self._clock = clock
        self._started_at: float | None = None
        self._scheduler_started = False
        self._lock = Lock()
        self._done = Event()
        self._done.set()

    @property
    def running(self) -> bool:
        return self.state is MonitorState.RUNNING

    def start(self) -> None:
        with self._lock:
            if self.state is MonitorState.RUNNING:
                raise ScrapeAlreadyRunning("A scrape is already being monitored")
            # Optimistic: running before the backend accepted the job
            self.state = MonitorState.RUNNING
            self._done.clear()
            self._started_at = self._clock()
            self.status_message = ""
        try:
            self.client.start_scrape()
        except ApiError as exc:
            with self._lock:
                self.state = MonitorState.IDLE
                self._done.set()
            self.logger.error("scrape_start_failed", error=str(exc))
            raise
        self._ensure_scheduler()
        self.scheduler.add_job(
            self.poll,
            trigger=IntervalTrigger(seconds=self.interval),
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("scrape_started", interval=self.interval)

    def poll(self) -> ScrapeStatus | None:
        """Run one status request; finish the cycle when the job is done."""

        if not self.running:
            return None
        if self._deadline_exceeded():
            self.logger.warning("scrape_monitor_deadline", max_duration=self.max_duration)
            self._finish(
                f"Stopped monitoring after {self.max_duration:g}s; the backend job may still be running.",
            )
            return None
        try:
            status = self.client.scrape_status()
        except ApiError as exc:
            # Next tick polls again
            self.logger.warning("scrape_poll_failed", error=str(exc))
            return None
        self.logger.debug("scrape_poll", running=status.running, message=status.message)
        self.status_message = status.message
        if not status.running:
            self._finish(status.message or COMPLETED_MESSAGE)
        return status

    def stop(self) -> str:
        """Cancel polling now and refresh; the backend job is not awaited.

        A monitor that is already idle (never started, or finished by a poll)
        is left alone and its last message is returned.
        """

        if not self._finish(STOPPED_MESSAGE):
            return self.last_message
        self.logger.info("scrape_monitor_stopped")
        return STOPPED_MESSAGE

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def shutdown(self) -> None:
        if self._scheduler_started:
            self.scheduler.shutdown(wait=False)
            self._scheduler_started = False

    # ------------------------------------------------------------------
    def _finish(self, message: str) -> bool:
        """End a running cycle; returns False when the monitor was already idle."""

        with self._lock:
            if self.state is not MonitorState.RUNNING:
                return False
            self.state = MonitorState.IDLE
            self._started_at = None
        self._cancel_poll_job()
        self.on_refresh()
        self.last_message = message
        self._done.set()
        self.logger.info("scrape_cycle_finished", message=message)
        if self.on_complete is not None:
            self.on_complete(message)
        return True

    def _cancel_poll_job(self) -> None:
        try:
            self.scheduler.remove_job(POLL_JOB_ID)
        except JobLookupError:
            pass

    def _deadline_exceeded(self) -> bool:
        if self.max_duration is None or self._started_at is None:
            return False
        return self._clock() - self._started_at >= self.max_duration

    def _ensure_scheduler(self) -> None:
        if not self._scheduler_started:
            self.scheduler.start()
            self._scheduler_started = True


__all__ = ["COMPLETED_MESSAGE", "MonitorState", "POLL_JOB_ID", "STOPPED_MESSAGE", "ScrapeJobMonitor"]
