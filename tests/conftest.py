"""
Shared pytest fixtures for Radio Recorder tests.

No real environment variables, capture pipelines or schedulers are used;
configuration lives in a temporary directory.
"""

import json
from pathlib import Path

import pytest

from radiorec.config import Config
from radiorec.controller import RecordingController
from radiorec.guide import JsonGuideSource
from radiorec.models import Program
from radiorec.timemodel import BroadcastTimeModel

from doubles import FakeClock, ManualTickSource, ScriptedCaptureBackend, jst


ENV_VARS = (
    "BROADCAST_TZ",
    "BROADCAST_DAY_START_HOUR",
    "TICK_INTERVAL",
    "GUIDE_DAYS",
    "GUIDE_PATH",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "CAPTURE_START_DELAY",
    "CAPTURE_STOP_DELAY",
    "MIN_FREE_SPACE_MB",
    "RADIOREC_DATA_DIR",
)


@pytest.fixture
def time_model() -> BroadcastTimeModel:
    return BroadcastTimeModel()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(jst(2025, 7, 25, 10, 0))


@pytest.fixture
def ticks() -> ManualTickSource:
    return ManualTickSource()


@pytest.fixture
def backend() -> ScriptedCaptureBackend:
    return ScriptedCaptureBackend()


@pytest.fixture
def program() -> Program:
    """A 30-minute program, 10:00-10:30 JST."""
    return Program(
        id="prog_010",
        station_id="TBS",
        title="Morning Half Hour",
        start_time=jst(2025, 7, 25, 10, 0),
        end_time=jst(2025, 7, 25, 10, 30),
    )


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(tmp_path: Path, clean_env) -> Config:
    cfg = Config(data_dir=tmp_path / "data")
    cfg.set_save_directory(str(tmp_path / "recordings"))
    cfg.min_free_space_mb = 0
    return cfg


@pytest.fixture
def guide_data() -> dict:
    return {
        "stations": [
            {"id": "TBS", "name": "TBSラジオ", "display_name": "TBS", "area_id": "JP13"},
            {"id": "LFR", "name": "ニッポン放送", "display_name": "LFR", "area_id": "JP13"},
        ],
        "programs": [
            {"id": "prog_003", "station_id": "TBS", "title": "Session",
             "ft": "20250725220000", "to": "20250726000000"},
            {"id": "prog_001", "station_id": "TBS", "title": "Morning",
             "ft": "20250725060000", "to": "20250725090000"},
            {"id": "prog_002", "station_id": "TBS", "title": "Late Night",
             "ft": "20250726010000", "to": "20250726030000",
             "personalities": ["A", "B"]},
            {"id": "prog_004", "station_id": "TBS", "title": "Next Morning",
             "ft": "20250726060000", "to": "20250726090000"},
            {"id": "prog_101", "station_id": "LFR", "title": "All Night",
             "ft": "20250726010000", "to": "20250726030000"},
            {"id": "bad_date", "station_id": "TBS", "title": "Feb 30",
             "ft": "20250230120000", "to": "20250230130000"},
            {"id": "bad_shape", "station_id": "TBS", "title": "Short",
             "ft": "2025072512000", "to": "20250725130000"},
            {"id": "backwards", "station_id": "TBS", "title": "Ends first",
             "ft": "20250725140000", "to": "20250725130000"},
        ],
    }


@pytest.fixture
def guide_path(tmp_path: Path, guide_data: dict) -> Path:
    path = tmp_path / "guide.json"
    path.write_text(json.dumps(guide_data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def late_clock() -> FakeClock:
    """02:00 on 7/26, still broadcast day 7/25."""
    return FakeClock(jst(2025, 7, 26, 2, 0))


@pytest.fixture
def messages() -> list:
    return []


@pytest.fixture
def controller(config, guide_path, backend, ticks, late_clock, messages) -> RecordingController:
    ctrl = RecordingController(
        source=JsonGuideSource(guide_path, config.time_model),
        backend=backend,
        tick_source=ticks,
        config=config,
        clock=late_clock,
    )

    async def notifier(message: str) -> None:
        messages.append(message)

    ctrl.set_notifier(notifier)
    return ctrl
