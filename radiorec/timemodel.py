"""
Broadcast time model.

Radio schedules are authored against a broadcast day that starts at an
early-morning cutover (05:00 by default) rather than at midnight, and the
program guide exchanges times as 14-digit local strings (YYYYMMDDHHmmss).

All conversions happen in an explicitly pinned zone (Asia/Tokyo by
default), never in the host's local zone. Broadcast days are returned as
``datetime.date`` values, so applying ``broadcast_day`` to its own result
is a no-op.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from .errors import InvalidTimestampError, MalformedTimestampError
from .models import ProgramInterval

DEFAULT_ZONE = "Asia/Tokyo"
DEFAULT_DAY_START_HOUR = 5
TIMESTAMP_LENGTH = 14

WEEKDAYS_JA = ("月", "火", "水", "木", "金", "土", "日")

DayLike = Union[date, datetime]
DurationLike = Union[timedelta, int, float]


def _to_seconds(duration: DurationLike) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


@dataclass(frozen=True)
class BroadcastTimeModel:
    """
    Stateless conversions between instants, guide timestamps and broadcast days.

    Attributes:
        zone: The broadcast zone every computation is pinned to
        day_start_hour: Local hour at which a broadcast day begins
    """
    zone: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_ZONE))
    day_start_hour: int = DEFAULT_DAY_START_HOUR

    def __post_init__(self) -> None:
        if not 0 <= self.day_start_hour <= 23:
            raise ValueError(
                f"day_start_hour must be between 0 and 23, got {self.day_start_hour}"
            )

    @classmethod
    def from_zone_name(
        cls, zone_name: str, day_start_hour: int = DEFAULT_DAY_START_HOUR
    ) -> "BroadcastTimeModel":
        """
        Build a model from an IANA zone name.

        Raises:
            ValueError: If the zone is unknown or the hour is out of range
        """
        try:
            zone = ZoneInfo(zone_name)
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {zone_name}") from e
        return cls(zone=zone, day_start_hour=day_start_hour)

    # ========== Instants ==========

    def now(self) -> datetime:
        """Current instant in the broadcast zone."""
        return datetime.now(self.zone)

    def to_local(self, instant: datetime) -> datetime:
        """
        Convert an aware instant to the broadcast zone.

        Raises:
            ValueError: If the datetime is naive
        """
        if instant.tzinfo is None or instant.utcoffset() is None:
            raise ValueError(f"Naive datetime has no broadcast zone: {instant!r}")
        return instant.astimezone(self.zone)

    def _day_date(self, day: DayLike) -> date:
        # datetime is a subclass of date, so check it first
        if isinstance(day, datetime):
            return self.to_local(day).date()
        return day

    # ========== Guide timestamps ==========

    def parse_timestamp(self, value: str) -> datetime:
        """
        Parse a 14-digit guide timestamp into an aware instant.

        The parsed instant is formatted back and compared with the input,
        so strings a lenient calendar would normalize (Feb 30, or a local
        time the zone skips) are rejected instead of shifted.

        Args:
            value: Timestamp in YYYYMMDDHHmmss form, local to the broadcast zone

        Returns:
            Timezone-aware datetime in the broadcast zone

        Raises:
            MalformedTimestampError: If the value is not exactly 14 ASCII digits
            InvalidTimestampError: If the digits are not a real local date/time
        """
        if (
            not isinstance(value, str)
            or len(value) != TIMESTAMP_LENGTH
            or not (value.isascii() and value.isdigit())
        ):
            raise MalformedTimestampError(str(value))

        try:
            naive = datetime(
                int(value[0:4]),
                int(value[4:6]),
                int(value[6:8]),
                int(value[8:10]),
                int(value[10:12]),
                int(value[12:14]),
            )
            instant = (
                naive.replace(tzinfo=self.zone)
                .astimezone(timezone.utc)
                .astimezone(self.zone)
            )
        except (ValueError, OverflowError) as e:
            raise InvalidTimestampError(value) from e

        if self.format_timestamp(instant) != value:
            raise InvalidTimestampError(value)

        return instant

    def format_timestamp(self, instant: datetime) -> str:
        """Format an instant as a 14-digit guide timestamp."""
        local = self.to_local(instant)
        return (
            f"{local.year:04d}{local.month:02d}{local.day:02d}"
            f"{local.hour:02d}{local.minute:02d}{local.second:02d}"
        )

    def is_valid_timestamp(self, value: str) -> bool:
        try:
            self.parse_timestamp(value)
        except (MalformedTimestampError, InvalidTimestampError):
            return False
        return True

    # ========== Display ==========

    def format_display_time(self, instant: datetime) -> str:
        """
        Format a program time as HH:mm on the broadcast-day clock.

        Hours before the cutover continue the previous day, so 00:30 is
        shown as 24:30 and 04:15 as 28:15.
        """
        local = self.to_local(instant)
        hour = local.hour
        if hour < self.day_start_hour:
            hour += 24
        return f"{hour:02d}:{local.minute:02d}"

    def format_duration(self, duration: DurationLike) -> str:
        """
        Format a program length, truncated to whole minutes.

        Returns:
            "{H}時間{M}分" when at least an hour long, otherwise "{M}分"
        """
        total_minutes = int(max(0.0, _to_seconds(duration)) // 60)
        hours, minutes = divmod(total_minutes, 60)
        if hours > 0:
            return f"{hours}時間{minutes}分"
        return f"{minutes}分"

    def format_clock(self, duration: DurationLike) -> str:
        """Format a duration as MM:SS, saturating at 00:00."""
        total_seconds = int(max(0.0, _to_seconds(duration)))
        minutes, seconds = divmod(total_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def format_program_date(self, day: DayLike) -> str:
        """Format a broadcast day as M/d(E) with a Japanese weekday, e.g. 7/25(金)."""
        d = self._day_date(day)
        return f"{d.month}/{d.day}({WEEKDAYS_JA[d.weekday()]})"

    # ========== Broadcast days ==========

    def broadcast_day(self, instant: DayLike) -> date:
        """
        Return the broadcast day an instant belongs to.

        Instants before the cutover hour belong to the previous calendar
        day. A date is already a broadcast day and is returned unchanged.
        """
        if not isinstance(instant, datetime):
            return instant
        local = self.to_local(instant)
        day = local.date()
        if local.hour < self.day_start_hour:
            day -= timedelta(days=1)
        return day

    def is_late_night(self, instant: datetime) -> bool:
        """Whether an instant falls in the after-midnight part of a broadcast day."""
        return self.to_local(instant).hour < self.day_start_hour

    def is_on_broadcast_day(self, interval: ProgramInterval, day: DayLike) -> bool:
        return self.broadcast_day(interval.start_time) == self._day_date(day)

    def guide_window(self, day: DayLike) -> tuple[datetime, datetime]:
        """
        Compute the fetch window for a broadcast day's program guide.

        Returns:
            (start, end): the cutover hour of the day, and the cutover
            hour of the following day
        """
        d = self._day_date(day)
        start = datetime.combine(d, time(self.day_start_hour), tzinfo=self.zone)
        end = datetime.combine(
            d + timedelta(days=1), time(self.day_start_hour), tzinfo=self.zone
        )
        return start, end

    def recent_broadcast_days(
        self, count: int, from_: Optional[datetime] = None
    ) -> list[date]:
        """
        List broadcast days going backwards, most recent first.

        Each entry is derived from an instant with ``broadcast_day``, so at
        02:00 the first entry is still the previous calendar day.

        Args:
            count: Number of days to produce
            from_: Reference instant, defaults to now

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        reference = self.to_local(from_ if from_ is not None else self.now())
        return [
            self.broadcast_day(reference - timedelta(days=offset))
            for offset in range(count)
        ]

    @staticmethod
    def overlaps(a: ProgramInterval, b: ProgramInterval) -> bool:
        return a.overlaps(b)


DEFAULT_TIME_MODEL = BroadcastTimeModel()

parse_timestamp = DEFAULT_TIME_MODEL.parse_timestamp
format_timestamp = DEFAULT_TIME_MODEL.format_timestamp
format_display_time = DEFAULT_TIME_MODEL.format_display_time
format_duration = DEFAULT_TIME_MODEL.format_duration
broadcast_day = DEFAULT_TIME_MODEL.broadcast_day
guide_window = DEFAULT_TIME_MODEL.guide_window
