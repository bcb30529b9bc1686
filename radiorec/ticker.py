"""
Progress tick sources for recording sessions.

A tick source delivers the current time to a callback at a fixed cadence
while it is running. Sessions start one when a recording becomes active
and stop it on every way out of the active state.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .errors import TickSourceError

logger = logging.getLogger(__name__)

TICK_JOB_ID = "recording_tick"

TickCallback = Callable[[datetime], None]


class TickSource(ABC):
    """Periodic source of tick messages."""

    @abstractmethod
    def start(self, deliver: TickCallback) -> None:
        """
        Start delivering ticks.

        Raises:
            TickSourceError: If the source is already running
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering ticks. Safe to call when not running."""

    @property
    @abstractmethod
    def running(self) -> bool:
        """Whether ticks are currently being delivered."""

    def shutdown(self) -> None:
        """Release any resources held by the source."""
        self.stop()


class SchedulerTickSource(TickSource):
    """
    Tick source backed by an APScheduler interval job.

    The job coroutine runs on the event loop, so ticks reach the session
    on the same thread as every other session call. Missed ticks are
    coalesced; sessions derive progress from wall-clock time, not from
    the number of ticks.

    Attributes:
        interval: Seconds between ticks
        scheduler: The APScheduler instance, created on first start
    """

    def __init__(
        self,
        interval: float = 1.0,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
    ):
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")
        self.interval = interval
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._clock = clock or (lambda: datetime.now(tz or timezone.utc))
        self._timezone = tz
        self._job: Optional[Job] = None
        self._deliver: Optional[TickCallback] = None

    @property
    def running(self) -> bool:
        return self._job is not None

    def _ensure_scheduler(self) -> AsyncIOScheduler:
        if self.scheduler is None:
            if self._timezone is not None:
                self.scheduler = AsyncIOScheduler(timezone=self._timezone)
            else:
                self.scheduler = AsyncIOScheduler()
        if not self.scheduler.running:
            self.scheduler.start()
            logger.debug("Tick scheduler started")
        return self.scheduler

    async def _fire(self) -> None:
        deliver = self._deliver
        if deliver is None:
            return
        deliver(self._clock())

    def start(self, deliver: TickCallback) -> None:
        if self._job is not None:
            raise TickSourceError("Tick source is already running")

        scheduler = self._ensure_scheduler()
        self._deliver = deliver
        self._job = scheduler.add_job(
            self._fire,
            trigger=IntervalTrigger(seconds=self.interval),
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.debug(f"Tick source started ({self.interval}s interval)")

    def stop(self) -> None:
        self._deliver = None
        if self._job is None:
            return

        try:
            self._job.remove()
        except LookupError:
            # Scheduler already dropped the job (e.g. during shutdown)
            logger.debug("Tick job was already removed")
        self._job = None
        logger.debug("Tick source stopped")

    def shutdown(self) -> None:
        """Stop ticking and shut the scheduler down."""
        self.stop()
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Tick scheduler stopped")
        self.scheduler = None
