"""Tests for the broadcast time model."""

from datetime import date, datetime, timedelta, timezone

import pytest

from radiorec import timemodel
from radiorec.errors import InvalidTimestampError, MalformedTimestampError, ParseError
from radiorec.models import ProgramInterval
from radiorec.timemodel import BroadcastTimeModel

from doubles import jst


def interval(start: datetime, end: datetime, program_id: str = "p") -> ProgramInterval:
    return ProgramInterval(start, end, "TBS", program_id)


class TestTimestamps:
    @pytest.mark.parametrize("value", [
        "20250725220000",
        "20240229120000",
        "20250101000000",
        "20251231235959",
    ])
    def test_round_trip(self, time_model, value):
        assert time_model.format_timestamp(time_model.parse_timestamp(value)) == value

    def test_parse_is_pinned_to_broadcast_zone(self, time_model):
        parsed = time_model.parse_timestamp("20250725220000")
        assert parsed == jst(2025, 7, 25, 22, 0)
        assert parsed.utcoffset() == timedelta(hours=9)

    def test_format_converts_other_zones(self, time_model):
        instant = datetime(2025, 7, 25, 13, 0, tzinfo=timezone.utc)
        assert time_model.format_timestamp(instant) == "20250725220000"

    @pytest.mark.parametrize("value", [
        "20250230120000",  # Feb 30
        "20250229120000",  # not a leap year
        "20250725240000",  # hour 24
        "20250725126000",  # minute 60
        "00000101000000",  # year 0
    ])
    def test_invalid_dates_are_rejected(self, time_model, value):
        with pytest.raises(InvalidTimestampError):
            time_model.parse_timestamp(value)

    @pytest.mark.parametrize("value", [
        "2025072512000",
        "202507251200000",
        "",
        "2025-07-25T120",
        "２０２５０７２５１２００００",
    ])
    def test_malformed_strings_are_rejected(self, time_model, value):
        with pytest.raises(MalformedTimestampError):
            time_model.parse_timestamp(value)

    def test_parse_errors_are_value_errors(self, time_model):
        with pytest.raises(ValueError) as exc_info:
            time_model.parse_timestamp("20250230120000")
        assert isinstance(exc_info.value, ParseError)
        assert exc_info.value.value == "20250230120000"

    def test_skipped_local_time_is_rejected(self):
        model = BroadcastTimeModel.from_zone_name("America/New_York")
        # 02:30 does not exist on the spring-forward date
        with pytest.raises(InvalidTimestampError):
            model.parse_timestamp("20250309023000")
        assert model.is_valid_timestamp("20250309033000")

    def test_is_valid_timestamp(self, time_model):
        assert time_model.is_valid_timestamp("20250725220000")
        assert not time_model.is_valid_timestamp("20250230120000")
        assert not time_model.is_valid_timestamp("abc")

    def test_format_rejects_naive(self, time_model):
        with pytest.raises(ValueError):
            time_model.format_timestamp(datetime(2025, 7, 25, 12, 0))


class TestBroadcastDay:
    def test_before_cutover_belongs_to_previous_day(self, time_model):
        assert time_model.broadcast_day(jst(2025, 7, 26, 4, 59)) == date(2025, 7, 25)

    def test_cutover_starts_new_day(self, time_model):
        assert time_model.broadcast_day(jst(2025, 7, 26, 5, 0)) == date(2025, 7, 26)

    def test_midnight(self, time_model):
        assert time_model.broadcast_day(jst(2025, 7, 26, 0, 0)) == date(2025, 7, 25)

    def test_other_zone_input(self, time_model):
        # 19:59 UTC is 04:59 JST the next calendar day
        assert time_model.broadcast_day(
            datetime(2025, 7, 25, 19, 59, tzinfo=timezone.utc)
        ) == date(2025, 7, 25)
        assert time_model.broadcast_day(
            datetime(2025, 7, 25, 20, 0, tzinfo=timezone.utc)
        ) == date(2025, 7, 26)

    @pytest.mark.parametrize("hour", range(24))
    def test_idempotent(self, time_model, hour):
        day = time_model.broadcast_day(jst(2025, 7, 26, hour, 30))
        assert time_model.broadcast_day(day) == day

    def test_naive_datetime_is_rejected(self, time_model):
        with pytest.raises(ValueError):
            time_model.broadcast_day(datetime(2025, 7, 26, 2, 0))

    def test_custom_cutover(self):
        model = BroadcastTimeModel(day_start_hour=4)
        assert model.broadcast_day(jst(2025, 7, 26, 4, 30)) == date(2025, 7, 26)
        assert model.format_display_time(jst(2025, 7, 26, 4, 30)) == "04:30"

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_cutover_hour_is_validated(self, hour):
        with pytest.raises(ValueError):
            BroadcastTimeModel(day_start_hour=hour)

    def test_unknown_zone(self):
        with pytest.raises(ValueError):
            BroadcastTimeModel.from_zone_name("Mars/Olympus_Mons")

    def test_is_late_night(self, time_model):
        assert time_model.is_late_night(jst(2025, 7, 26, 3, 0))
        assert not time_model.is_late_night(jst(2025, 7, 26, 5, 0))
        assert not time_model.is_late_night(jst(2025, 7, 25, 23, 59))


class TestDisplay:
    @pytest.mark.parametrize("hour,minute,expected", [
        (0, 30, "24:30"),
        (4, 59, "28:59"),
        (5, 0, "05:00"),
        (14, 5, "14:05"),
        (23, 59, "23:59"),
    ])
    def test_display_time(self, time_model, hour, minute, expected):
        assert time_model.format_display_time(jst(2025, 7, 26, hour, minute)) == expected

    @pytest.mark.parametrize("duration,expected", [
        (timedelta(minutes=90), "1時間30分"),
        (timedelta(hours=2), "2時間0分"),
        (timedelta(minutes=59, seconds=59), "59分"),
        (timedelta(0), "0分"),
        (5400, "1時間30分"),
    ])
    def test_duration(self, time_model, duration, expected):
        assert time_model.format_duration(duration) == expected

    @pytest.mark.parametrize("duration,expected", [
        (timedelta(minutes=90), "90:00"),
        (timedelta(seconds=65), "01:05"),
        (timedelta(0), "00:00"),
        (timedelta(seconds=-5), "00:00"),
    ])
    def test_clock(self, time_model, duration, expected):
        assert time_model.format_clock(duration) == expected

    def test_program_date(self, time_model):
        assert time_model.format_program_date(date(2025, 7, 25)) == "7/25(金)"
        assert time_model.format_program_date(date(2025, 1, 5)) == "1/5(日)"


class TestGuideWindow:
    def test_window_spans_cutover_to_cutover(self, time_model):
        start, end = time_model.guide_window(date(2025, 7, 25))
        assert start == jst(2025, 7, 25, 5, 0)
        assert end == jst(2025, 7, 26, 5, 0)
        assert end - start == timedelta(hours=24)

    def test_window_of_broadcast_day(self, time_model):
        day = time_model.broadcast_day(jst(2025, 7, 26, 2, 0))
        assert time_model.guide_window(day)[0] == jst(2025, 7, 25, 5, 0)

    def test_datetime_uses_its_calendar_date(self, time_model):
        assert time_model.guide_window(jst(2025, 7, 25, 0, 0)) == time_model.guide_window(
            date(2025, 7, 25)
        )

    def test_late_night_program_is_on_previous_day(self, time_model):
        late = interval(jst(2025, 7, 26, 1, 0), jst(2025, 7, 26, 3, 0))
        assert time_model.is_on_broadcast_day(late, date(2025, 7, 25))
        assert not time_model.is_on_broadcast_day(late, date(2025, 7, 26))


class TestRecentDays:
    def test_late_night_reference(self, time_model):
        days = time_model.recent_broadcast_days(3, jst(2025, 7, 26, 2, 0))
        assert days == [date(2025, 7, 25), date(2025, 7, 24), date(2025, 7, 23)]

    def test_daytime_reference(self, time_model):
        days = time_model.recent_broadcast_days(2, jst(2025, 7, 26, 10, 0))
        assert days == [date(2025, 7, 26), date(2025, 7, 25)]

    def test_zero_count(self, time_model):
        assert time_model.recent_broadcast_days(0, jst(2025, 7, 26, 10, 0)) == []

    def test_negative_count(self, time_model):
        with pytest.raises(ValueError):
            time_model.recent_broadcast_days(-1)

    def test_defaults_to_now(self, time_model):
        days = time_model.recent_broadcast_days(7)
        assert len(days) == 7
        assert days[0] == time_model.broadcast_day(time_model.now())


class TestOverlap:
    def test_overlapping(self, time_model):
        a = interval(jst(2025, 7, 25, 10), jst(2025, 7, 25, 11))
        b = interval(jst(2025, 7, 25, 10, 30), jst(2025, 7, 25, 11, 30))
        assert time_model.overlaps(a, b)
        assert time_model.overlaps(b, a)

    def test_touching_intervals_do_not_overlap(self, time_model):
        a = interval(jst(2025, 7, 25, 10), jst(2025, 7, 25, 11))
        b = interval(jst(2025, 7, 25, 11), jst(2025, 7, 25, 12))
        assert not time_model.overlaps(a, b)
        assert not time_model.overlaps(b, a)

    def test_contained(self, time_model):
        outer = interval(jst(2025, 7, 25, 10), jst(2025, 7, 25, 13))
        inner = interval(jst(2025, 7, 25, 11), jst(2025, 7, 25, 12))
        assert time_model.overlaps(outer, inner)

    def test_empty_interval_is_rejected(self):
        with pytest.raises(ValueError):
            interval(jst(2025, 7, 25, 10), jst(2025, 7, 25, 10))

    def test_naive_interval_is_rejected(self):
        with pytest.raises(ValueError):
            interval(datetime(2025, 7, 25, 10), datetime(2025, 7, 25, 11))


def test_module_level_helpers():
    instant = timemodel.parse_timestamp("20250726013000")
    assert timemodel.format_timestamp(instant) == "20250726013000"
    assert timemodel.format_display_time(instant) == "25:30"
    assert timemodel.broadcast_day(instant) == date(2025, 7, 25)
    assert timemodel.format_duration(timedelta(minutes=45)) == "45分"
    assert timemodel.guide_window(date(2025, 7, 25))[1] == jst(2025, 7, 26, 5, 0)
