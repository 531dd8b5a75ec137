#!/usr/bin/env python3
"""
hilal — inspect the in-game calendar from a terminal.

Usage examples:
  # Hijri date, prayer schedule and holiday for the configured start time
  hilal today

  # Same, three days and a half later
  hilal today --day 3 --hour 18

  # Look-ahead table for the next two weeks
  hilal ahead -n 14

  # Run two game days at full speed and print every notification
  hilal simulate -n 2
"""

import argparse
import logging
import sys

from hilal import lookahead, util
from hilal.bus import (
    DayChanged,
    HolidayEnter,
    HolidayExit,
    HourChanged,
    PrayerTime,
    Signal,
)
from hilal.clock import SECONDS_PER_DAY
from hilal.config import settings
from hilal.prayer import PRAYERS
from hilal.state import State

log = logging.getLogger(__name__)


def describe(sig: Signal) -> str:
    match sig:
        case HourChanged(hour=hour):
            return f"hour {hour:02d}:00"
        case DayChanged(date=date, day_index=day_index):
            return f"day {day_index}: {date}"
        case PrayerTime(prayer=prayer, at=at):
            return f"{prayer.label} at {at:%H:%M}"
        case HolidayEnter(window=window):
            return f"holiday begins: {window.name}"
        case HolidayExit(window=window):
            return f"holiday ends: {window.name}"
    return type(sig).__name__


def cmd_today(args: argparse.Namespace) -> int:
    state = State.from_settings(settings)
    clock, scheduler = state.clock, state.scheduler
    if args.day is not None or args.hour is not None:
        clock.add_days(args.day or 0)
        if args.hour is not None:
            clock.set_time_of_day(args.hour)
    if not scheduler.try_start():
        print("calendar unavailable", file=sys.stderr)
        return 1

    date = scheduler.get_current_hijri_date()
    print(f"{clock.formatted()} ({clock.local_name}, {clock.daypart.value})")
    print(f"{date}, {date.spoken()}")
    if scheduler.is_ramadan():
        print("It is Ramadan.")
    else:
        print(f"Ramadan in {util.tally(scheduler.days_until_ramadan(), 'day')}.")
    if holiday := scheduler.active_holiday():
        print(f"Holiday: {holiday.name} ({holiday.category})")
    print(scheduler.get_current_prayer_schedule().format())
    return 0


def cmd_ahead(args: argparse.Namespace) -> int:
    state = State.from_settings(settings)
    start = state.clock.now.day_index
    days = lookahead.day_range(start, args.n)
    table = lookahead.hijri_table(settings.base_date, days)
    prayers = lookahead.prayer_table(
        settings.base_date,
        days,
        solar_noon_hour=settings.solar_noon_hour,
        astronomical=settings.use_astronomical_calculation,
    )
    active = lookahead.active_windows(state.scheduler.holidays, table)

    header = " ".join(f"{p.label:>7}" for p in PRAYERS)
    print(f"{'day':>5} {'hijri':>11} {header}  holiday")
    for day, (y, m, d), row, window in zip(days, table, prayers, active):
        times = " ".join(f"{_hhmm(frac):>7}" for frac in row)
        name = window.name if window else ""
        print(f"{day:>5} {f'{d}/{m}/{y}':>11} {times}  {name}")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    state = State.from_settings(settings)
    clock = state.clock
    dt = SECONDS_PER_DAY / clock.time_scale / args.frames_per_day

    for cls in (HourChanged, DayChanged, PrayerTime, HolidayEnter, HolidayExit):
        if cls is HourChanged and not args.hours:
            continue
        state.bus.connect(cls, lambda sig: print(f"[{clock.formatted()}] {describe(sig)}"))

    if not state.scheduler.try_start():
        print("calendar unavailable", file=sys.stderr)
        return 1
    for _ in range(args.n * args.frames_per_day):
        state.frame(dt)
    return 0


def _hhmm(fraction: float) -> str:
    minutes = round(fraction * 1440) % 1440
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="hilal", description="In-game calendar tools.")
    sub = ap.add_subparsers(dest="command", required=True)

    today = sub.add_parser("today", help="Show date, prayers and holiday.")
    today.add_argument("--day", type=int, default=None, help="Days past the start day.")
    today.add_argument("--hour", type=float, default=None, help="Hour of day [0, 24).")
    today.set_defaults(fn=cmd_today)

    ahead = sub.add_parser("ahead", help="Look-ahead table of upcoming days.")
    ahead.add_argument("-n", type=int, default=7, help="Number of days.")
    ahead.set_defaults(fn=cmd_ahead)

    sim = sub.add_parser("simulate", help="Tick the clock and print notifications.")
    sim.add_argument("-n", type=int, default=1, help="Number of game days.")
    sim.add_argument(
        "--frames-per-day", type=int, default=1440, help="Frames per game day."
    )
    sim.add_argument("--hours", action="store_true", help="Also print hour changes.")
    sim.set_defaults(fn=cmd_simulate)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level)
    return args.fn(args)


if __name__ == "__main__":
    raise SystemExit(main())
