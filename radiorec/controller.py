"""
Recording controller.

This module connects the program guide, the broadcast time model and the
single recording session. It resolves broadcast days, lists and looks up
programs, starts and cancels recordings, and turns session events into
notification messages for the bot.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from .capture import CaptureBackend, MockCaptureBackend
from .config import Config, get_config
from .errors import AlreadyActiveError, InsufficientStorageError, ProgramNotFoundError
from .guide import JsonGuideSource, ProgramSource
from .models import Program, Station
from .session import RecordingSession, SessionEvent, SessionEventKind, SessionState
from .ticker import SchedulerTickSource, TickSource
from .utils import format_bytes, has_enough_space

logger = logging.getLogger(__name__)

# Type alias for notification callbacks
NotifyCallback = Callable[[str], Awaitable[None]]

STATE_LABELS = {
    SessionState.IDLE: "⚪ Idle",
    SessionState.STARTING: "⏳ Starting",
    SessionState.ACTIVE: "🔴 Recording",
}


class RecordingController:
    """
    Owns the recording session and everything needed to drive it.

    Attributes:
        config: Configuration object
        time_model: Broadcast time model from the configuration
        source: Program guide source
        session: The one recording session of this process
        last_event: Most recent session event, if any
    """

    def __init__(
        self,
        source: ProgramSource,
        backend: CaptureBackend,
        tick_source: TickSource,
        config: Optional[Config] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the controller and its session."""
        self.config = config or get_config()
        self.time_model = self.config.time_model
        self.source = source
        self.session = RecordingSession(
            backend,
            tick_source,
            observer=self._on_session_event,
            clock=clock,
            time_model=self.time_model,
        )
        self.last_event: Optional[SessionEvent] = None
        self._clock = clock or self.time_model.now
        self._notifier: Optional[NotifyCallback] = None
        self._notify_tasks: set[asyncio.Task] = set()

    def set_notifier(self, notifier: Optional[NotifyCallback]) -> None:
        """
        Set the callback that receives recording notifications.

        Args:
            notifier: Async function called with a message for each
                state change, or None to stop notifying
        """
        self._notifier = notifier

    # ========== Guide ==========

    def available_days(self, now: Optional[datetime] = None) -> list[date]:
        """
        Get the broadcast days that can be browsed, most recent first.

        Args:
            now: Reference instant, defaults to the controller's clock
        """
        return self.time_model.recent_broadcast_days(
            self.config.guide_days, now or self._clock()
        )

    def resolve_day(self, index: int = 0, now: Optional[datetime] = None) -> date:
        """
        Get a browsable broadcast day by position (0 = today's broadcast day).

        Raises:
            ValueError: If the index is outside the browsable range
        """
        days = self.available_days(now)
        if not 0 <= index < len(days):
            raise ValueError(f"Day must be between 0 and {len(days) - 1}")
        return days[index]

    async def list_stations(self) -> list[Station]:
        return await self.source.fetch_stations()

    async def list_programs(self, station_id: str, day: date) -> list[Program]:
        """
        Get a station's programs for one broadcast day, in start order.

        The guide is queried for the day's window; late-night programs
        belong to the day they follow.
        """
        start, end = self.time_model.guide_window(day)
        programs = await self.source.fetch_programs(station_id, start, end)
        return sorted(
            (p for p in programs if self.time_model.is_on_broadcast_day(p.interval, day)),
            key=lambda p: p.start_time,
        )

    async def find_program(self, station_id: str, program_id: str, day: date) -> Program:
        """
        Look up a program on a broadcast day.

        Raises:
            ProgramNotFoundError: If the program is not in that day's guide
        """
        for program in await self.list_programs(station_id, day):
            if program.id == program_id:
                return program
        raise ProgramNotFoundError(station_id, program_id)

    # ========== Recording ==========

    async def start_recording(self, station_id: str, program_id: str, day: date) -> Program:
        """
        Start recording a program from the guide.

        Capture confirmation arrives later as a session event.

        Returns:
            The program being recorded

        Raises:
            AlreadyActiveError: If a recording is already in progress
            ProgramNotFoundError: If the program is not in the guide
            InsufficientStorageError: If the save directory is short on space
        """
        if self.session.is_recording:
            raise AlreadyActiveError(self.session.state.value)

        program = await self.find_program(station_id, program_id, day)

        required = self.config.min_free_space_mb * 1024 * 1024
        if not has_enough_space(self.config.save_directory, required):
            raise InsufficientStorageError(
                f"Need {format_bytes(required)} free in {self.config.save_directory}"
            )

        self.session.start(program)
        return program

    def cancel_recording(self) -> bool:
        """
        Cancel the current recording.

        Returns:
            True if a recording was cancelled, False if none was running
        """
        return self.session.cancel() is not None

    async def shutdown(self) -> None:
        """Cancel any recording and release the tick source."""
        stop_task = self.session.cancel()
        if stop_task is not None:
            logger.warning("Recording in progress at shutdown, cancelled")
            await stop_task
        self.session.tick_source.shutdown()

    # ========== Status ==========

    def format_program(self, program: Program) -> str:
        """Format a program as a one-line guide entry."""
        tm = self.time_model
        return (
            f"{tm.format_display_time(program.start_time)}-"
            f"{tm.format_display_time(program.end_time)} "
            f"{program.title} ({tm.format_duration(program.duration)})"
        )

    def get_status(self) -> dict:
        """
        Get the current status of the recorder.

        Returns:
            Dictionary with recording status information
        """
        snapshot = self.session.snapshot()
        program = snapshot.program
        return {
            "state": snapshot.state.value,
            "is_recording": self.session.is_recording,
            "station_id": program.station_id if program else None,
            "program_id": program.id if program else None,
            "title": program.title if program else None,
            "elapsed": snapshot.elapsed_time_string,
            "remaining": snapshot.remaining_time_string,
            "progress": snapshot.progress_fraction,
            "save_directory": str(self.config.save_directory),
        }

    def format_status(self) -> str:
        """
        Get a human-readable status summary.

        Returns:
            Formatted string with the current recording state
        """
        snapshot = self.session.snapshot()
        lines = [
            "📊 Recorder Status\n",
            f"Recording: {STATE_LABELS.get(snapshot.state, snapshot.state.value)}",
        ]

        program = snapshot.program
        if program is not None:
            day = self.time_model.broadcast_day(program.start_time)
            lines.append(f"Program: {program.title} ({program.station_id})")
            lines.append(
                f"Aired: {self.time_model.format_program_date(day)} "
                f"{self.time_model.format_display_time(program.start_time)}"
            )
        if snapshot.state is SessionState.ACTIVE:
            lines.append(
                f"Elapsed: {snapshot.elapsed_time_string} / "
                f"Remaining: {snapshot.remaining_time_string} "
                f"({snapshot.progress_fraction:.0%})"
            )

        lines.append(f"\n💾 Save directory: {self.config.save_directory}")
        return "\n".join(lines)

    # ========== Notifications ==========

    def _describe(self, program: Program) -> str:
        tm = self.time_model
        day = tm.broadcast_day(program.start_time)
        return (
            f"{program.title}\n"
            f"{program.station_id} {tm.format_program_date(day)} "
            f"{tm.format_display_time(program.start_time)}-"
            f"{tm.format_display_time(program.end_time)}"
        )

    def format_event(self, event: SessionEvent) -> Optional[str]:
        """
        Build the notification text for a session event.

        Returns:
            Message text, or None for events that are not announced
        """
        snapshot = event.snapshot
        program = snapshot.program
        if program is None or event.kind is SessionEventKind.PROGRESS:
            return None

        if event.kind is SessionEventKind.STARTING:
            return f"⏳ Starting recording\n\n{self._describe(program)}"
        if event.kind is SessionEventKind.ACTIVE:
            return (
                f"🎙️ Recording started\n\n{self._describe(program)}\n"
                f"Duration: {self.time_model.format_duration(program.duration)}"
            )
        if event.kind is SessionEventKind.COMPLETED:
            return (
                f"✅ Recording completed\n\n{self._describe(program)}\n"
                f"Recorded: {snapshot.elapsed_time_string}"
            )
        if event.kind is SessionEventKind.CANCELLED:
            return (
                f"⏹️ Recording cancelled\n\n{self._describe(program)}\n"
                f"Recorded: {snapshot.elapsed_time_string}"
            )
        if event.kind is SessionEventKind.FAILED:
            return f"❌ Recording failed\n\n{self._describe(program)}\nError: {event.error}"
        return f"⚠️ Capture did not stop cleanly\n\n{self._describe(program)}\nError: {event.error}"

    def _on_session_event(self, event: SessionEvent) -> None:
        self.last_event = event
        if event.snapshot.state.is_terminal:
            logger.info(f"Recording attempt ended: {event.kind.value}")

        message = self.format_event(event)
        if message is None:
            return
        if not (self._notifier and self.config.dynamic.notifications_enabled):
            return

        task = asyncio.create_task(self._notify(self._notifier, message))
        self._notify_tasks.add(task)
        task.add_done_callback(self._notify_tasks.discard)

    async def _notify(self, notifier: NotifyCallback, message: str) -> None:
        try:
            await notifier(message)
        except Exception as e:
            logger.error(f"Notification callback failed: {e}")


# Global controller instance
_controller: Optional[RecordingController] = None


def get_controller() -> RecordingController:
    """
    Get the global recording controller.

    Creates the instance on first call (lazy initialization), wiring the
    configured guide file, the simulated capture backend and a scheduler
    tick source.

    Returns:
        The global RecordingController instance
    """
    global _controller
    if _controller is None:
        config = get_config()
        time_model = config.time_model
        _controller = RecordingController(
            source=JsonGuideSource(config.guide_path, time_model),
            backend=MockCaptureBackend(
                start_delay=config.capture_start_delay,
                stop_delay=config.capture_stop_delay,
            ),
            tick_source=SchedulerTickSource(
                interval=config.tick_interval,
                clock=time_model.now,
                tz=time_model.zone,
            ),
            config=config,
        )
    return _controller
