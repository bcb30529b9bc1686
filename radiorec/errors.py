"""
Exception types for Radio Recorder.

Parsing errors are always raised to the caller. Session errors describe
why a recording attempt was rejected or ended; capture stop failures are
reported alongside a cancellation, never instead of it.
"""

from typing import Optional


class RadioRecError(Exception):
    """Base class for all Radio Recorder errors."""


class ParseError(RadioRecError, ValueError):
    """Raised when a broadcast timestamp string cannot be parsed."""

    def __init__(self, value: str, message: str):
        super().__init__(f"{message}: {value!r}")
        self.value = value


class MalformedTimestampError(ParseError):
    """The string is not exactly 14 ASCII digits."""

    def __init__(self, value: str):
        super().__init__(value, "Timestamp must be 14 digits (YYYYMMDDHHmmss)")


class InvalidTimestampError(ParseError):
    """The digits do not name a real, round-trippable local date/time."""

    def __init__(self, value: str):
        super().__init__(value, "Timestamp is not a valid date/time")


class SessionError(RadioRecError):
    """Base class for recording session errors."""


class AlreadyActiveError(SessionError):
    """A recording was requested while another attempt is in flight."""

    def __init__(self, state: Optional[str] = None):
        message = "A recording is already in progress"
        if state:
            message = f"{message} (state: {state})"
        super().__init__(message)
        self.state = state


class CaptureStartFailedError(SessionError):
    """The capture backend could not begin capturing."""

    def __init__(self, reason: str):
        super().__init__(f"Capture failed to start: {reason}")
        self.reason = reason


class CaptureStopFailedError(SessionError):
    """The capture backend reported an error while stopping."""

    def __init__(self, reason: str):
        super().__init__(f"Capture failed to stop: {reason}")
        self.reason = reason


class CaptureError(RadioRecError):
    """Raised by capture backends when an operation fails."""


class TickSourceError(RadioRecError):
    """Raised when a tick source is started twice."""


class ProgramNotFoundError(RadioRecError):
    """The requested program is not in the guide for the selected day."""

    def __init__(self, station_id: str, program_id: str):
        super().__init__(f"Program {program_id} not found for station {station_id}")
        self.station_id = station_id
        self.program_id = program_id


class InsufficientStorageError(RadioRecError):
    """The save directory does not have enough free space for a recording."""
