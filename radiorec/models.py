"""
Data models for stations and programs.

Programs carry their broadcast interval as aware datetimes in the
broadcast zone. Intervals are half-open: [start_time, end_time).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional


def _require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware: {value!r}")


@dataclass(frozen=True)
class ProgramInterval:
    """
    The time slot a program occupies on a station.

    Attributes:
        start_time: Inclusive start instant
        end_time: Exclusive end instant
        station_id: Station broadcasting the program
        program_id: Identifier of the program in the guide
    """
    start_time: datetime
    end_time: datetime
    station_id: str
    program_id: str

    def __post_init__(self) -> None:
        _require_aware(self.start_time, "start_time")
        _require_aware(self.end_time, "end_time")
        if not self.start_time < self.end_time:
            raise ValueError(
                f"Program {self.program_id} must start before it ends "
                f"({self.start_time.isoformat()} >= {self.end_time.isoformat()})"
            )

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def overlaps(self, other: "ProgramInterval") -> bool:
        return self.start_time < other.end_time and other.start_time < self.end_time


@dataclass(frozen=True)
class Station:
    """A radio station in the directory."""
    id: str
    name: str
    display_name: str
    area_id: str
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    href: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "area_id": self.area_id,
            "logo_url": self.logo_url,
            "banner_url": self.banner_url,
            "href": self.href,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Station":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            display_name=data.get("display_name", data["id"]),
            area_id=data.get("area_id", ""),
            logo_url=data.get("logo_url"),
            banner_url=data.get("banner_url"),
            href=data.get("href"),
        )


@dataclass(frozen=True)
class Program:
    """
    A program from the guide.

    Only the interval matters to recording; the rest is display metadata.
    """
    id: str
    station_id: str
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    personalities: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        ProgramInterval(self.start_time, self.end_time, self.station_id, self.id)

    @property
    def interval(self) -> ProgramInterval:
        return ProgramInterval(
            start_time=self.start_time,
            end_time=self.end_time,
            station_id=self.station_id,
            program_id=self.id,
        )

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def personalities_text(self) -> str:
        return " / ".join(self.personalities)
