"""Scaled in-game clock.

The clock owns a single accumulated value, total game seconds. Day index,
hour, minute and second are always derived from it. Every mutation goes
through one setter, which pulses ``ClockHour`` / ``ClockDay`` when the integer
hour or the day index moved since the previous sample.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from hilal import phases, util
from hilal.bus import Bus, ClockDay, ClockHour
from hilal.config import MAX_TIME_SCALE, MIN_TIME_SCALE, Settings
from hilal.config import settings as default_settings

log = logging.getLogger(__name__)

SECONDS_PER_MINUTE: float = 60.0
SECONDS_PER_HOUR: float = 3600.0
SECONDS_PER_DAY: float = 86400.0
HOURS_PER_DAY: float = 24.0

# Largest representable time of day below midnight.
LAST_SECOND_OF_DAY: float = math.nextafter(SECONDS_PER_DAY, 0.0)


@dataclass(frozen=True, slots=True)
class GameTime:
    total_seconds: float = 0.0

    @property
    def day_index(self) -> int:
        return math.floor(self.total_seconds / SECONDS_PER_DAY)

    @property
    def seconds_into_day(self) -> float:
        out = self.total_seconds - self.day_index * SECONDS_PER_DAY
        return util.clamp(out, 0.0, LAST_SECOND_OF_DAY)

    @property
    def hour_of_day(self) -> float:
        """Continuous hour in [0, 24)."""
        return self.seconds_into_day / SECONDS_PER_HOUR

    @property
    def hour(self) -> int:
        return int(self.hour_of_day)

    @property
    def minute(self) -> int:
        return int(self.seconds_into_day % SECONDS_PER_HOUR // SECONDS_PER_MINUTE)

    @property
    def second(self) -> float:
        return self.seconds_into_day % SECONDS_PER_MINUTE

    @property
    def time_of_day(self) -> float:
        """Elapsed fraction of the day in [0, 1)."""
        return self.seconds_into_day / SECONDS_PER_DAY

    @classmethod
    def at(cls, *, day_index: int = 0, hour: float = 0.0) -> "GameTime":
        return cls(day_index * SECONDS_PER_DAY + hour * SECONDS_PER_HOUR)


class GameClock:
    def __init__(
        self,
        *,
        bus: Bus | None = None,
        time_scale: float = 24.0,
        start_day: int = 0,
        start_hour: float = 6.0,
        base_date: date = date(2024, 1, 1),
    ):
        self.bus = bus or Bus()
        self.paused = False
        self.start_day = start_day
        self.start_hour = start_hour
        self.base_date = base_date
        self._time_scale = MIN_TIME_SCALE
        self.time_scale = time_scale
        self._now = GameTime.at(day_index=start_day, hour=start_hour)

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, bus: Bus | None = None) -> "GameClock":
        cfg = cfg or default_settings
        return cls(
            bus=bus,
            time_scale=cfg.time_scale,
            start_day=cfg.start_day,
            start_hour=cfg.start_hour,
            base_date=cfg.base_date,
        )

    @property
    def time_scale(self) -> float:
        return self._time_scale

    @time_scale.setter
    def time_scale(self, value: float) -> None:
        out = util.clamp(value, MIN_TIME_SCALE, MAX_TIME_SCALE)
        if out != value:
            log.warning("time_scale clamped %s", util.tags(got=value, used=out))
        self._time_scale = out

    @property
    def now(self) -> GameTime:
        return self._now

    @property
    def total_seconds(self) -> float:
        return self._now.total_seconds

    # Mutation

    def advance(self, delta_real_seconds: float) -> None:
        if self.paused or delta_real_seconds <= 0:
            return
        self.scrub(self._now.total_seconds + delta_real_seconds * self._time_scale)

    def set_time_of_day(self, hour: float) -> None:
        """Jump to ``hour`` on the current day."""
        seconds = util.clamp(hour * SECONDS_PER_HOUR, 0.0, LAST_SECOND_OF_DAY)
        self.scrub(self._now.day_index * SECONDS_PER_DAY + seconds)

    def add_hours(self, hours: float) -> None:
        self.scrub(self._now.total_seconds + hours * SECONDS_PER_HOUR)

    def add_days(self, days: int) -> None:
        self.scrub(self._now.total_seconds + days * SECONDS_PER_DAY)

    def reset(self) -> None:
        self.scrub(GameTime.at(day_index=self.start_day, hour=self.start_hour).total_seconds)

    def scrub(self, total_seconds: float) -> None:
        """Set the clock and pulse hour/day changes against the previous sample."""
        prev = self._now
        now = GameTime(total_seconds)
        self._now = now

        if now.hour != prev.hour:
            self.bus.pulse(ClockHour(hour=now.hour, day_index=now.day_index))
        if now.day_index != prev.day_index:
            self.bus.pulse(ClockDay(day_index=now.day_index, previous=prev.day_index))

    # Pause

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle_pause(self) -> None:
        self.paused = not self.paused

    # Calendar

    @property
    def gregorian_date(self) -> date:
        return self.base_date + timedelta(days=self._now.day_index)

    def calendar_datetime(self) -> datetime:
        midnight = datetime.combine(self.gregorian_date, time())
        return midnight + timedelta(seconds=self._now.seconds_into_day)

    def formatted(self) -> str:
        return f"{self.calendar_datetime():%Y-%m-%d %H:%M:%S}"

    # Time of day

    @property
    def daypart(self) -> phases.DayPart:
        return phases.get_daypart(hour=self._now.hour_of_day)

    @property
    def local_name(self) -> str:
        return phases.local_name(self._now.hour_of_day)

    def time_of_day_lerp(self) -> float:
        """Smoothed day fraction for light and colour blending."""
        return util.smoothstep(0.0, 1.0, self._now.time_of_day)
