"""
Program guide sources.

The recorder only needs stations and program intervals from a guide.
``JsonGuideSource`` reads them from a local JSON file in which program
times use the 14-digit guide timestamp format:

    {
      "stations": [{"id": "TBS", "name": "TBSラジオ", "display_name": "TBS",
                    "area_id": "JP13"}],
      "programs": [{"id": "p1", "station_id": "TBS", "title": "...",
                    "ft": "20250725220000", "to": "20250726000000",
                    "description": "...", "personalities": ["..."]}]
    }

Rows whose timestamps do not parse exactly are skipped, never adjusted.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import ParseError
from .models import Program, ProgramInterval, Station
from .timemodel import DEFAULT_TIME_MODEL, BroadcastTimeModel

logger = logging.getLogger(__name__)


class ProgramSource(ABC):
    """Supplies stations and programs to the recording controller."""

    @abstractmethod
    async def fetch_stations(self) -> list[Station]:
        """Return all stations in the directory."""

    @abstractmethod
    async def fetch_programs(
        self, station_id: str, start: datetime, end: datetime
    ) -> list[Program]:
        """Return the programs of a station overlapping [start, end)."""


class JsonGuideSource(ProgramSource):
    """
    Program source backed by a local JSON guide file.

    The file is re-read on every fetch so edits are picked up without a
    restart.

    Attributes:
        path: Location of the guide file
        time_model: Parses the guide's timestamps
    """

    def __init__(self, path: Path, time_model: Optional[BroadcastTimeModel] = None):
        self.path = Path(path)
        self.time_model = time_model or DEFAULT_TIME_MODEL

    def _load(self) -> dict:
        if not self.path.exists():
            logger.warning(f"Guide file not found: {self.path}")
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid guide file {self.path}, ignoring it: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Guide file {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _parse_program(self, row: dict) -> Optional[Program]:
        if not isinstance(row, dict):
            logger.warning(f"Skipping program row that is not an object: {row!r}")
            return None

        program_id = row.get("id")
        try:
            start = self.time_model.parse_timestamp(row["ft"])
            end = self.time_model.parse_timestamp(row["to"])
            return Program(
                id=str(row["id"]),
                station_id=str(row["station_id"]),
                title=row.get("title", ""),
                start_time=start,
                end_time=end,
                description=row.get("description", ""),
                personalities=tuple(row.get("personalities", [])),
            )
        except ParseError as e:
            logger.warning(f"Skipping program {program_id!r}: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid program row {program_id!r}: {e}")
        return None

    def parse_programs(self, data: dict) -> list[Program]:
        """Parse every valid program row of a guide document."""
        programs = []
        for row in data.get("programs") or []:
            program = self._parse_program(row)
            if program is not None:
                programs.append(program)
        return programs

    async def fetch_stations(self) -> list[Station]:
        data = await asyncio.to_thread(self._load)
        stations = []
        for row in data.get("stations") or []:
            try:
                stations.append(Station.from_dict(row))
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping invalid station row: {e}")
        return stations

    async def fetch_programs(
        self, station_id: str, start: datetime, end: datetime
    ) -> list[Program]:
        data = await asyncio.to_thread(self._load)
        window = ProgramInterval(start, end, station_id, "window")

        programs = [
            program
            for program in self.parse_programs(data)
            if program.station_id == station_id and program.interval.overlaps(window)
        ]
        logger.debug(
            f"Loaded {len(programs)} programs for {station_id} "
            f"({self.time_model.format_timestamp(start)}-"
            f"{self.time_model.format_timestamp(end)})"
        )
        return programs
