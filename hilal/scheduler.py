"""Day cycle scheduler.

Samples the clock once per tick and turns threshold crossings into one-shot
notifications on the bus:

- ``HourChanged`` for each integer hour the clock reports,
- ``DayChanged`` when the clock reports a new day, after the Hijri date and
  prayer schedule were rebuilt and every prayer went back to pending,
- ``PrayerTime`` once per prayer per day,
- ``HolidayEnter`` / ``HolidayExit`` on holiday window edges.

Within a tick the order is always hour, day, prayers, holidays. The scheduler
is the only writer of the current date, schedule and holiday; readers get
frozen snapshots.
"""

import asyncio
import logging
import math
from typing import TypeVar

from pydantic import BaseModel

from hilal import prayer, util
from hilal.bus import (
    Bus,
    ClockDay,
    ClockHour,
    DayChanged,
    HolidayEnter,
    HolidayExit,
    HourChanged,
    PrayerTime,
    Signal,
)
from hilal.clock import GameClock, GameTime
from hilal.config import Settings
from hilal.config import settings as default_settings
from hilal.hijri import HijriCalendar, HijriDate, days_until_ramadan
from hilal.holidays import HolidayRegistry, HolidayWindow
from hilal.prayer import Prayer, PrayerInstant, PrayerSchedule


T = TypeVar("T", bound=Signal)

log = logging.getLogger(__name__)

# Tolerance for tick jitter: 0.001 game hours as a day fraction (3.6s).
PRAYER_EPSILON: float = 0.001 / 24.0
# A prayer this close to either end of the day counts as hugging midnight.
NEAR_MIDNIGHT: float = 0.01
# Grace after the wrap in which a midnight-hugging Fajr still fires.
MIDNIGHT_GRACE: float = 0.05
WRAP_HIGH: float = 0.95
WRAP_LOW: float = 0.05


class MissingDependency(RuntimeError):
    """The clock or calendar collaborator is not attached."""


class CalendarSave(BaseModel):
    hijri_year: int
    hijri_month: int
    hijri_day: int
    moon_sighting_seed: int = 0


class ClockSave(BaseModel):
    day_index: int
    hour_of_day: float


def is_day_wrap(prev: float, curr: float) -> bool:
    return prev > WRAP_HIGH and curr < WRAP_LOW


def crossed(prev: float, curr: float, target: float) -> bool:
    return prev < target and curr >= target - PRAYER_EPSILON


def wrapped_past(prev: float, curr: float, target: float) -> bool:
    """The day wrap jumped over a target that sits right at midnight."""
    near = target <= NEAR_MIDNIGHT or target >= 1.0 - NEAR_MIDNIGHT
    return near and is_day_wrap(prev, curr) and curr < target + MIDNIGHT_GRACE


class DayCycleScheduler:
    def __init__(
        self,
        *,
        clock: GameClock | None = None,
        calendar: HijriCalendar | None = None,
        holidays: HolidayRegistry | None = None,
        bus: Bus | None = None,
        cfg: Settings | None = None,
    ):
        self.cfg = cfg or default_settings
        self.clock = clock
        self.calendar = calendar
        self.holidays = holidays or HolidayRegistry()
        self.out = bus
        self.latitude = self.cfg.latitude
        self.longitude = self.cfg.longitude
        self.enabled = False

        self._date: HijriDate | None = None
        self._instants: tuple[PrayerInstant, ...] = ()
        self._fired: set[Prayer] = set()
        self._holiday: HolidayWindow | None = None
        self._day_index = 0
        self._prev = 0.0
        # Per clock signal type: first queued signal seen and how many were read.
        self._cursors: dict[type, tuple[Signal | None, int]] = {}
        self._offset = 0

    @property
    def bus(self) -> Bus:
        if self.out is not None:
            return self.out
        if self.clock is None:
            raise MissingDependency("clock")
        return self.clock.bus

    # Lifecycle

    def attach(
        self, *, clock: GameClock | None = None, calendar: HijriCalendar | None = None
    ) -> None:
        self.clock = clock or self.clock
        self.calendar = calendar or self.calendar

    def try_start(self) -> bool:
        """One start-up attempt. False if a collaborator is missing."""
        try:
            self._initialize()
        except MissingDependency as e:
            log.warning("scheduler cannot start %s", util.tags(missing=e))
            return False
        return True

    async def start(self) -> bool:
        """Start, retrying once after ``init_retry_delay``.

        Gives up by disabling itself: no notifications beats wrong ones.
        """
        if self.try_start():
            return True
        await asyncio.sleep(self.cfg.init_retry_delay)
        if self.try_start():
            return True
        self.enabled = False
        log.error("scheduler disabled after retry; calendar features are off")
        return False

    def disable(self) -> None:
        self.enabled = False

    def enable(self) -> None:
        if self._date is None:
            raise MissingDependency("scheduler was never started")
        self.enabled = True
        now = self.clock.now
        self._prev = now.time_of_day
        self._skip_clock_signals()
        if now.day_index != self._day_index:
            # Day signals sent while disabled were skipped above.
            self._roll_day(now.day_index)
            self._mark_past_fired(now.time_of_day)

    def _initialize(self) -> None:
        if self.clock is None:
            raise MissingDependency("clock")
        if self.calendar is None:
            raise MissingDependency("calendar")

        now = self.clock.now
        self._day_index = now.day_index
        self._date = self.calendar.date_for(now.day_index, self._offset)
        self._rebuild_schedule()
        self._mark_past_fired(now.time_of_day)
        self._holiday = None
        self._prev = now.time_of_day
        self._skip_clock_signals()
        self.enabled = True
        log.info(
            "scheduler started %s",
            util.tags(day=now.day_index, date=self._date, hour=now.hour),
        )

    # Tick

    def evaluate(self) -> None:
        if not self.enabled:
            return

        now = self.clock.now
        curr = now.time_of_day
        prev = self._prev

        for sig in self._unseen(ClockHour):
            self.bus.pulse(HourChanged(hour=sig.hour))

        days = self._unseen(ClockDay)
        if days and days[-1].day_index != self._day_index:
            self._roll_day(days[-1].day_index)

        self._check_prayers(prev, curr)
        self._check_holidays()
        self._prev = curr

    def _unseen(self, cls: type[T]) -> list[T]:
        "Clock signals of ``cls`` queued since the last look."
        queued = list(self.clock.bus.iter(cls))
        head, cursor = self._cursors.get(cls, (None, 0))
        if not queued or queued[0] is not head:
            # Fresh queue since the last tick.
            cursor = 0
        self._cursors[cls] = (queued[0] if queued else None, len(queued))
        return queued[cursor:]

    def _skip_clock_signals(self) -> None:
        "Treat clock signals already queued as seen."
        self._unseen(ClockHour)
        self._unseen(ClockDay)

    def _roll_day(self, day_index: int) -> None:
        self._day_index = day_index
        self._date = self.calendar.date_for(day_index, self._offset)
        self._rebuild_schedule()
        log.info("new day %s", util.tags(day=day_index, date=self._date))
        self.bus.pulse(DayChanged(date=self._date, day_index=day_index))

    def _rebuild_schedule(self) -> None:
        day = self.calendar.gregorian(self._day_index)
        self._instants = prayer.instants_for(day, self.cfg)
        self._fired = set()

    def _mark_past_fired(self, curr: float) -> None:
        self._fired = {inst.prayer for inst in self._instants if inst.fraction <= curr}

    def _check_prayers(self, prev: float, curr: float) -> None:
        for inst in self._instants:
            if inst.prayer in self._fired:
                continue
            if crossed(prev, curr, inst.fraction) or (
                inst.prayer == Prayer.FAJR and wrapped_past(prev, curr, inst.fraction)
            ):
                self._fire(inst)

    def _fire(self, inst: PrayerInstant) -> None:
        self._fired.add(inst.prayer)
        log.info("prayer time %s", util.tags(prayer=inst.prayer, at=f"{inst.at:%H:%M}"))
        self.bus.pulse(PrayerTime(prayer=inst.prayer, at=inst.at))

    def _check_holidays(self) -> None:
        current = self.holidays.active(self._date)
        previous = self._holiday
        if current == previous:
            return
        self._holiday = current
        if previous is not None and previous.fires_event:
            self.bus.pulse(HolidayExit(window=previous))
        if current is not None and current.fires_event:
            self.bus.pulse(HolidayEnter(window=current))

    # Save / load

    def save(self) -> tuple[CalendarSave, ClockSave]:
        if self._date is None or self.clock is None or self.calendar is None:
            raise MissingDependency("scheduler was never started")
        now = self.clock.now
        return (
            CalendarSave(
                hijri_year=self._date.year,
                hijri_month=self._date.month,
                hijri_day=self._date.day,
                moon_sighting_seed=self.calendar.seed,
            ),
            ClockSave(day_index=now.day_index, hour_of_day=now.hour_of_day),
        )

    def load(self, calendar: CalendarSave, clock: ClockSave) -> bool:
        """Resume a saved session.

        The saved date is adopted as-is and later days count on from it.
        Prayers already past at the loaded time count as fired, and an active
        holiday is adopted without an enter notification.
        """
        if self.clock is None or self.calendar is None:
            log.error("cannot load calendar; scheduler has no clock or calendar")
            return False

        self.calendar.reseed(calendar.moon_sighting_seed)
        self.clock.scrub(
            GameTime.at(day_index=clock.day_index, hour=clock.hour_of_day).total_seconds
        )
        now = self.clock.now
        loaded = HijriDate.make(calendar.hijri_year, calendar.hijri_month, calendar.hijri_day)

        self._day_index = now.day_index
        self._offset = self.calendar.offset_for(loaded, now.day_index)
        self._date = loaded
        self._rebuild_schedule()
        self._mark_past_fired(now.time_of_day)
        self._holiday = self.holidays.active(loaded)
        self._prev = now.time_of_day
        self._skip_clock_signals()
        self.enabled = True
        log.info(
            "calendar loaded %s",
            util.tags(date=loaded, day=now.day_index, offset=self._offset),
        )
        return True

    # Queries

    def get_current_hijri_date(self) -> HijriDate | None:
        return self._date

    def get_current_prayer_schedule(self) -> PrayerSchedule | None:
        if self._date is None:
            return None
        day = self.calendar.gregorian(self._day_index)
        return PrayerSchedule(day=day, instants=self._instants, fired=frozenset(self._fired))

    def next_prayer(self) -> PrayerInstant | None:
        if not self._instants:
            return None
        upcoming = [inst for inst in self._instants if inst.prayer not in self._fired]
        return min(upcoming, key=lambda inst: inst.fraction, default=None)

    def is_ramadan(self) -> bool:
        return self._date is not None and self._date.is_ramadan

    def is_sacred_month(self) -> bool:
        return self._date is not None and self._date.is_sacred_month

    def is_eid(self) -> bool:
        return self._date is not None and (
            self._date.is_eid_al_fitr or self._date.is_eid_al_adha
        )

    def days_until_ramadan(self) -> int | None:
        if self._date is None:
            return None
        return days_until_ramadan(self._date)

    def is_holiday_active(self) -> bool:
        return self._holiday is not None

    def active_holiday(self) -> HolidayWindow | None:
        return self._holiday

    def sun_altitude(self) -> float:
        now = self.clock.now
        day_of_year = self.clock.gregorian_date.timetuple().tm_yday
        return prayer.sun_altitude(now.hour_of_day, day_of_year, self.latitude)

    # Debug

    def trigger_prayer(self, which: Prayer) -> None:
        """Fire a prayer now regardless of the clock."""
        for inst in self._instants:
            if inst.prayer == which:
                log.warning("manually firing prayer %s", util.tags(prayer=which))
                self._fire(inst)
                return

    def recalculate(
        self, *, latitude: float | None = None, longitude: float | None = None
    ) -> None:
        """Rebuild today's schedule, e.g. after moving location; all prayers go pending."""
        if latitude is not None and math.isfinite(latitude):
            self.latitude = latitude
        if longitude is not None and math.isfinite(longitude):
            self.longitude = longitude
        if self._date is None:
            return
        log.info("recalculating %s", util.tags(lat=self.latitude, lon=self.longitude))
        self._rebuild_schedule()
