import logging
import math
from datetime import date, datetime

import pytest

from hilal.bus import Bus, ClockDay, ClockHour
from hilal.clock import SECONDS_PER_DAY, SECONDS_PER_HOUR, GameClock, GameTime
from hilal.phases import DayPart


def test_start_point(clock):
    now = clock.now
    assert now.day_index == 0
    assert now.hour == 6
    assert now.minute == 0
    assert now.time_of_day == 0.25
    assert clock.formatted() == "2024-01-01 06:00:00"


def test_advance_scales_real_seconds(clock):
    clock.advance(1.0)
    assert clock.total_seconds == 6 * SECONDS_PER_HOUR + 24.0


def test_one_real_hour_is_one_game_day(clock):
    clock.advance(3600.0)
    assert clock.now.day_index == 1
    assert clock.now.hour == 6


def test_advance_ignores_non_positive_delta(clock):
    before = clock.total_seconds
    clock.advance(0.0)
    clock.advance(-5.0)
    assert clock.total_seconds == before


def test_pause_freezes_time(clock):
    before = clock.total_seconds
    clock.pause()
    clock.advance(10.0)
    assert clock.total_seconds == before
    clock.resume()
    clock.advance(10.0)
    assert clock.total_seconds > before


def test_toggle_pause(clock):
    clock.toggle_pause()
    assert clock.paused
    clock.toggle_pause()
    assert not clock.paused


def test_time_scale_is_clamped(caplog):
    with caplog.at_level(logging.WARNING):
        clock = GameClock(time_scale=1000.0)
    assert clock.time_scale == 100.0
    assert "time_scale clamped" in caplog.text

    clock.time_scale = 0.0
    assert clock.time_scale == 0.1


def test_hour_signal_on_hour_change(clock, bus):
    clock.add_hours(0.5)
    assert bus.is_empty(ClockHour)
    clock.add_hours(0.5)
    assert list(bus.iter(ClockHour)) == [ClockHour(hour=7, day_index=0)]
    assert bus.is_empty(ClockDay)


def test_day_signal_after_hour_signal(clock, bus):
    clock.set_time_of_day(23.5)
    bus.clear()
    clock.add_hours(1.0)
    assert bus.pulsed == [
        ClockHour(hour=0, day_index=1),
        ClockDay(day_index=1, previous=0),
    ]


def test_add_days_keeps_the_hour(clock, bus):
    clock.add_days(2)
    assert clock.now.day_index == 2
    assert clock.now.hour == 6
    assert bus.is_empty(ClockHour)
    assert list(bus.iter(ClockDay)) == [ClockDay(day_index=2, previous=0)]
    assert clock.gregorian_date == date(2024, 1, 3)


def test_set_time_of_day_stays_on_the_day(clock):
    clock.set_time_of_day(30.0)
    assert clock.now.day_index == 0
    assert clock.now.hour == 23
    clock.set_time_of_day(-1.0)
    assert clock.now.hour_of_day == 0.0


def test_reset_returns_to_start(clock):
    clock.add_days(5)
    clock.add_hours(7.25)
    clock.reset()
    assert clock.now == GameTime.at(day_index=0, hour=6.0)


def test_calendar_datetime(clock):
    clock.add_days(31)
    clock.set_time_of_day(18.5)
    assert clock.calendar_datetime() == datetime(2024, 2, 1, 18, 30)


def test_from_settings(cfg):
    tuned = cfg.model_copy(update={"start_day": 3, "start_hour": 20.0, "time_scale": 2.0})
    clock = GameClock.from_settings(tuned, Bus())
    assert clock.now.day_index == 3
    assert clock.now.hour == 20
    assert clock.time_scale == 2.0


def test_daypart_and_local_name(clock):
    assert clock.daypart is DayPart.MORNING
    assert clock.local_name == "Hen'dhun"
    clock.set_time_of_day(18.2)
    assert clock.daypart is DayPart.EVENING
    assert clock.local_name == "Maghrib"


def test_time_of_day_lerp(clock):
    clock.set_time_of_day(12.0)
    assert clock.time_of_day_lerp() == pytest.approx(0.5)
    clock.set_time_of_day(0.0)
    assert clock.time_of_day_lerp() == 0.0


class TestGameTime:
    def test_derived_fields(self):
        t = GameTime(SECONDS_PER_DAY * 2 + 13 * SECONDS_PER_HOUR + 61.5)
        assert t.day_index == 2
        assert t.hour == 13
        assert t.minute == 1
        assert t.second == pytest.approx(1.5)

    def test_negative_time_floors(self):
        t = GameTime(-1.0)
        assert t.day_index == -1
        assert t.hour == 23

    def test_time_of_day_stays_below_one(self):
        t = GameTime(math.nextafter(SECONDS_PER_DAY, 0.0))
        assert t.day_index == 0
        assert t.time_of_day < 1.0

    def test_at(self):
        assert GameTime.at(day_index=1, hour=12.0).total_seconds == 1.5 * SECONDS_PER_DAY
