"""
Recording session state machine.

A session owns one recording attempt at a time:

    IDLE -> STARTING -> ACTIVE -> COMPLETED | CANCELLED | FAILED -> IDLE

Capture outcomes and progress ticks arrive as messages and are applied by
``handle``, a synchronous transition function. Progress is derived from
the wall-clock time carried by each tick, so late or skipped ticks never
distort it. Completion is detected on the first tick at or past the
program's duration.

The tick source runs only while the session is ACTIVE: it is started on
entry and stopped on every exit. Terminal states are reported to the
observer and the session returns to IDLE before any further ``start`` is
accepted.

All methods must be called from the event loop thread.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from functools import partial
from typing import Callable, Optional, Union

from .capture import CaptureBackend
from .errors import (
    AlreadyActiveError,
    CaptureStartFailedError,
    CaptureStopFailedError,
    SessionError,
)
from .models import Program
from .ticker import TickSource
from .timemodel import DEFAULT_TIME_MODEL, BroadcastTimeModel

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.CANCELLED, SessionState.FAILED)


class SessionEventKind(Enum):
    STARTING = "starting"
    ACTIVE = "active"
    PROGRESS = "progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    STOP_FAILED = "stop_failed"


# ========== Messages ==========

@dataclass(frozen=True)
class CaptureConfirmed:
    """The backend confirmed capture for an attempt."""
    attempt: int
    at: datetime


@dataclass(frozen=True)
class CaptureFailed:
    """The backend failed to begin capture for an attempt."""
    attempt: int
    reason: str


@dataclass(frozen=True)
class Tick:
    """Periodic progress tick for an attempt."""
    attempt: int
    now: datetime


SessionMessage = Union[CaptureConfirmed, CaptureFailed, Tick]


# ========== Observer payloads ==========

@dataclass(frozen=True)
class SessionSnapshot:
    """
    Point-in-time view of a session's progress.

    Attributes:
        state: Session state when the snapshot was taken
        program: Program being recorded, if any
        started_at: When capture was confirmed
        elapsed: Wall-clock time since capture was confirmed
        remaining: Time left until the program's duration is reached
        progress_fraction: elapsed / duration, capped at 1.0
        estimated_end_time: started_at + program duration
        elapsed_time_string: elapsed as MM:SS
        remaining_time_string: remaining as MM:SS, "--:--" without a program
    """
    state: SessionState
    program: Optional[Program]
    started_at: Optional[datetime]
    elapsed: timedelta
    remaining: timedelta
    progress_fraction: float
    estimated_end_time: Optional[datetime]
    elapsed_time_string: str
    remaining_time_string: str


@dataclass(frozen=True)
class SessionEvent:
    kind: SessionEventKind
    snapshot: SessionSnapshot
    error: Optional[SessionError] = None


SessionObserver = Callable[[SessionEvent], None]


class RecordingSession:
    """
    Drives one recording attempt at a time through capture and progress.

    Attributes:
        backend: Capture backend used for every attempt
        tick_source: Tick source held while ACTIVE
        time_model: Used for the clock and MM:SS display strings
    """

    def __init__(
        self,
        backend: CaptureBackend,
        tick_source: TickSource,
        observer: Optional[SessionObserver] = None,
        clock: Optional[Callable[[], datetime]] = None,
        time_model: Optional[BroadcastTimeModel] = None,
    ):
        self.backend = backend
        self.tick_source = tick_source
        self.time_model = time_model or DEFAULT_TIME_MODEL
        self._observer = observer
        self._clock = clock or self.time_model.now

        self._state = SessionState.IDLE
        self._program: Optional[Program] = None
        self._started_at: Optional[datetime] = None
        self._elapsed = timedelta(0)
        self._attempt = 0
        self._ticking = False
        self._pending_start: Optional[asyncio.Task] = None

    # ========== Derived state ==========

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def program(self) -> Optional[Program]:
        return self._program

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def is_recording(self) -> bool:
        return self._state in (SessionState.STARTING, SessionState.ACTIVE)

    @property
    def elapsed(self) -> timedelta:
        """Elapsed time as of the last tick."""
        return self._elapsed

    @property
    def remaining(self) -> timedelta:
        if self._program is None:
            return timedelta(0)
        return max(timedelta(0), self._program.duration - self._elapsed)

    @property
    def progress_fraction(self) -> float:
        if self._program is None:
            return 0.0
        return min(self._elapsed / self._program.duration, 1.0)

    @property
    def estimated_end_time(self) -> Optional[datetime]:
        if self._program is None or self._started_at is None:
            return None
        return self._started_at + self._program.duration

    @property
    def elapsed_time_string(self) -> str:
        return self.time_model.format_clock(self._elapsed)

    @property
    def remaining_time_string(self) -> str:
        if self._program is None:
            return "--:--"
        return self.time_model.format_clock(self.remaining)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            program=self._program,
            started_at=self._started_at,
            elapsed=self._elapsed,
            remaining=self.remaining,
            progress_fraction=self.progress_fraction,
            estimated_end_time=self.estimated_end_time,
            elapsed_time_string=self.elapsed_time_string,
            remaining_time_string=self.remaining_time_string,
        )

    # ========== Commands ==========

    def start(self, program: Program) -> asyncio.Task:
        """
        Begin a recording attempt for a program.

        Capture is requested in the background; the returned task finishes
        once the backend has answered and the outcome has been applied.
        Awaiting it is optional.

        Args:
            program: The program to record

        Returns:
            The task requesting capture from the backend

        Raises:
            AlreadyActiveError: If the session is not idle
        """
        if self._state is not SessionState.IDLE:
            raise AlreadyActiveError(self._state.value)

        self._attempt += 1
        self._program = program
        self._state = SessionState.STARTING
        logger.info(
            f"Recording starting: {program.station_id}/{program.id} "
            f"({program.title}, attempt {self._attempt})"
        )
        # Registered before observers run so a cancel from STARTING reaches it
        task = asyncio.create_task(self._begin_capture(self._attempt, program))
        self._pending_start = task
        self._emit(SessionEventKind.STARTING)
        return task

    def cancel(self) -> Optional[asyncio.Task]:
        """
        Cancel the current attempt.

        The session reports CANCELLED and returns to IDLE immediately. The
        backend is asked to stop in the background; a failure there is
        reported as a STOP_FAILED event and does not undo the cancellation.

        Returns:
            The task stopping the capture, or None if nothing was recording
        """
        if self._state is SessionState.STARTING:
            if self._pending_start and not self._pending_start.done():
                self._pending_start.cancel()
        elif self._state is not SessionState.ACTIVE:
            logger.debug(f"Cancel ignored in state {self._state.value}")
            return None

        program = self._program
        logger.info(f"Recording cancelled: {program.station_id}/{program.id}")
        final = self._finish(SessionState.CANCELLED, SessionEventKind.CANCELLED)
        return asyncio.create_task(self._stop_capture(final))

    # ========== Transitions ==========

    def handle(self, message: SessionMessage) -> None:
        """Apply a capture outcome or tick message to the session."""
        if not isinstance(message, (CaptureConfirmed, CaptureFailed, Tick)):
            raise TypeError(f"Unknown session message: {message!r}")
        if message.attempt != self._attempt:
            logger.debug(f"Dropping {type(message).__name__} from attempt {message.attempt}")
            return

        if isinstance(message, CaptureConfirmed):
            self._on_capture_confirmed(message)
        elif isinstance(message, CaptureFailed):
            self._on_capture_failed(message)
        else:
            self._on_tick(message)

    def _on_capture_confirmed(self, message: CaptureConfirmed) -> None:
        if self._state is not SessionState.STARTING:
            return

        self._started_at = message.at
        self._elapsed = timedelta(0)
        self._state = SessionState.ACTIVE
        self._pending_start = None
        self._acquire_ticks(message.attempt)
        logger.info(
            f"Recording active since {message.at.isoformat()} "
            f"(duration {self.time_model.format_duration(self._program.duration)})"
        )
        self._emit(SessionEventKind.ACTIVE)

    def _on_capture_failed(self, message: CaptureFailed) -> None:
        if self._state is not SessionState.STARTING:
            return

        error = CaptureStartFailedError(message.reason)
        logger.error(str(error))
        self._finish(SessionState.FAILED, SessionEventKind.FAILED, error)

    def _on_tick(self, message: Tick) -> None:
        if self._state is not SessionState.ACTIVE:
            return

        self._elapsed = max(timedelta(0), message.now - self._started_at)
        logger.debug(
            f"Tick: elapsed {self.elapsed_time_string}, "
            f"remaining {self.remaining_time_string}"
        )
        self._emit(SessionEventKind.PROGRESS)

        if self._elapsed >= self._program.duration:
            logger.info(f"Recording completed: {self._program.station_id}/{self._program.id}")
            self._finish(SessionState.COMPLETED, SessionEventKind.COMPLETED)

    def _finish(
        self,
        state: SessionState,
        kind: SessionEventKind,
        error: Optional[SessionError] = None,
    ) -> SessionSnapshot:
        self._release_ticks()
        self._state = state
        final = self.snapshot()
        self._emit(kind, error, final)
        self._reset()
        return final

    def _reset(self) -> None:
        self._state = SessionState.IDLE
        self._program = None
        self._started_at = None
        self._elapsed = timedelta(0)
        self._pending_start = None

    # ========== Tick source ==========

    def _acquire_ticks(self, attempt: int) -> None:
        self.tick_source.start(partial(self._deliver_tick, attempt))
        self._ticking = True

    def _release_ticks(self) -> None:
        if self._ticking:
            self.tick_source.stop()
            self._ticking = False

    def _deliver_tick(self, attempt: int, now: datetime) -> None:
        self.handle(Tick(attempt=attempt, now=now))

    # ========== Backend calls ==========

    async def _begin_capture(self, attempt: int, program: Program) -> None:
        try:
            await self.backend.begin_capture(program)
        except asyncio.CancelledError:
            logger.debug(f"Capture start for attempt {attempt} was cancelled")
            raise
        except Exception as e:
            self.handle(CaptureFailed(attempt=attempt, reason=str(e) or type(e).__name__))
        else:
            self.handle(CaptureConfirmed(attempt=attempt, at=self._clock()))

    async def _stop_capture(self, final: SessionSnapshot) -> None:
        try:
            await self.backend.stop_capture()
        except Exception as e:
            error = CaptureStopFailedError(str(e) or type(e).__name__)
            logger.warning(str(error))
            self._emit(SessionEventKind.STOP_FAILED, error, final)

    # ========== Observer ==========

    def _emit(
        self,
        kind: SessionEventKind,
        error: Optional[SessionError] = None,
        snapshot: Optional[SessionSnapshot] = None,
    ) -> None:
        if self._observer is None:
            return
        event = SessionEvent(kind=kind, snapshot=snapshot or self.snapshot(), error=error)
        try:
            self._observer(event)
        except Exception as e:
            logger.error(f"Session observer failed on {kind.value}: {e}")
