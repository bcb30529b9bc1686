"""
Capture backends.

A recording session drives capture through exactly two coroutines,
``begin_capture`` and ``stop_capture``. Backends signal failure by raising
``CaptureError``. The backend is chosen when the session is built.

``stop_capture`` is only called on cancellation. A capture that runs to
the end of its program is expected to end on its own, so a backend must
accept a new ``begin_capture`` after a completed one without being stopped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .errors import CaptureError
from .models import Program

logger = logging.getLogger(__name__)


class CaptureBackend(ABC):
    """Interface between a recording session and whatever captures audio."""

    @abstractmethod
    async def begin_capture(self, program: Program) -> None:
        """
        Begin capturing a program.

        Returns once capture is confirmed to be running.

        Raises:
            CaptureError: If capture could not be started
        """

    @abstractmethod
    async def stop_capture(self) -> None:
        """
        Stop the current capture.

        Raises:
            CaptureError: If the backend failed to stop cleanly
        """


class MockCaptureBackend(CaptureBackend):
    """
    Capture backend that only simulates latency.

    Useful for running the bot without a real capture pipeline. Failures
    can be injected with ``fail_start`` / ``fail_stop``.

    Attributes:
        start_delay: Seconds to wait before confirming a capture
        stop_delay: Seconds to wait before confirming a stop
        is_capturing: Whether a simulated capture is running
    """

    def __init__(
        self,
        start_delay: float = 1.0,
        stop_delay: float = 0.5,
        fail_start: Optional[str] = None,
        fail_stop: Optional[str] = None,
    ):
        self.start_delay = start_delay
        self.stop_delay = stop_delay
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.is_capturing: bool = False
        self.current_program: Optional[Program] = None

    async def begin_capture(self, program: Program) -> None:
        await asyncio.sleep(self.start_delay)

        if self.fail_start:
            raise CaptureError(self.fail_start)

        if self.current_program is not None:
            logger.debug(f"Previous capture {self.current_program.id} ended with its program")
        self.is_capturing = True
        self.current_program = program
        logger.info(f"Simulated capture started: {program.station_id}/{program.id}")

    async def stop_capture(self) -> None:
        await asyncio.sleep(self.stop_delay)

        self.is_capturing = False
        self.current_program = None

        if self.fail_stop:
            raise CaptureError(self.fail_stop)

        logger.info("Simulated capture stopped")
