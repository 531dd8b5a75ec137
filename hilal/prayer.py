"""Daily prayer times from a solar declination approximation.

Solar noon is a fixed local clock time (12:05 by default) instead of being
derived from longitude. Every other prayer is an offset from solar noon that
grows or shrinks with ``|declination| / 23.45``.
"""

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from hilal import util
from hilal.config import Settings
from hilal.config import settings as default_settings

log = logging.getLogger(__name__)

AXIAL_TILT: float = 23.45
SECONDS_PER_DAY: float = 86400.0
DEFAULT_SOLAR_NOON_HOUR: float = 12.0 + 5.0 / 60.0


class Prayer(StrEnum):
    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"

    @property
    def label(self) -> str:
        return self.value.capitalize()


PRAYERS: tuple[Prayer, ...] = tuple(Prayer)

# Used when astronomical calculation is switched off.
SIMPLIFIED_HOURS: dict[Prayer, float] = {
    Prayer.FAJR: 4.8,
    Prayer.DHUHR: 12.23,
    Prayer.ASR: 15.6,
    Prayer.MAGHRIB: 18.23,
    Prayer.ISHA: 19.43,
}


def declination(day_of_year: int) -> float:
    """Solar declination in degrees for a 1-based day of the year.

    Cooper's approximation: about 0 at the March equinox (day ~81) and
    +/-23.45 at the solstices.
    """
    # Keep the 284 phase. A (day + 10) phase puts the peak, not the zero,
    # at the March equinox and a zero at the June solstice.
    return AXIAL_TILT * math.sin(math.radians(360.0 / 365.0 * (284 + day_of_year)))


def tilt_ratio(day_of_year: int) -> float:
    return abs(declination(day_of_year)) / AXIAL_TILT


def prayer_offsets(ratio: float) -> dict[Prayer, float]:
    "Minutes from solar noon for each prayer."
    maghrib = 375.0 - 30.0 * ratio
    return {
        Prayer.FAJR: -(75.0 + 15.0 * ratio),
        Prayer.DHUHR: 0.0,
        Prayer.ASR: 180.0 + 60.0 * ratio,
        Prayer.MAGHRIB: maghrib,
        Prayer.ISHA: maghrib + 90.0 + 30.0 * ratio,
    }


def fraction_of_day(at: datetime) -> float:
    midnight = datetime.combine(at.date(), time())
    return util.wrap01((at - midnight).total_seconds() / SECONDS_PER_DAY)


@dataclass(frozen=True, slots=True)
class PrayerInstant:
    prayer: Prayer
    at: datetime
    fraction: float

    @classmethod
    def make(cls, prayer: Prayer, at: datetime) -> "PrayerInstant":
        return cls(prayer=prayer, at=at, fraction=fraction_of_day(at))


def calculate(
    day: date, *, solar_noon_hour: float = DEFAULT_SOLAR_NOON_HOUR
) -> tuple[PrayerInstant, ...]:
    ratio = tilt_ratio(day.timetuple().tm_yday)
    noon = datetime.combine(day, time()) + timedelta(hours=solar_noon_hour)
    return tuple(
        PrayerInstant.make(prayer, noon + timedelta(minutes=minutes))
        for prayer, minutes in prayer_offsets(ratio).items()
    )


def simplified(day: date) -> tuple[PrayerInstant, ...]:
    log.warning("using simplified prayer times %s", util.tags(day=day))
    midnight = datetime.combine(day, time())
    return tuple(
        PrayerInstant.make(prayer, midnight + timedelta(hours=hours))
        for prayer, hours in SIMPLIFIED_HOURS.items()
    )


def instants_for(day: date, cfg: Settings | None = None) -> tuple[PrayerInstant, ...]:
    cfg = cfg or default_settings
    if not cfg.use_astronomical_calculation:
        return simplified(day)
    return calculate(day, solar_noon_hour=cfg.solar_noon_hour)


@dataclass(frozen=True, slots=True)
class PrayerSchedule:
    """One day's five prayers and which of them have fired.

    Read-only snapshot; the scheduler hands out a fresh one on every query.
    """

    day: date
    instants: tuple[PrayerInstant, ...]
    fired: frozenset[Prayer] = frozenset()

    def __iter__(self) -> Iterator[PrayerInstant]:
        return iter(self.instants)

    def __len__(self) -> int:
        return len(self.instants)

    def get(self, prayer: Prayer) -> PrayerInstant:
        for inst in self.instants:
            if inst.prayer == prayer:
                return inst
        raise KeyError(prayer)

    def has_fired(self, prayer: Prayer) -> bool:
        return prayer in self.fired

    def pending(self) -> tuple[PrayerInstant, ...]:
        return tuple(inst for inst in self.instants if inst.prayer not in self.fired)

    def next_after(self, fraction: float) -> PrayerInstant | None:
        upcoming = [inst for inst in self.instants if inst.fraction > fraction]
        return min(upcoming, key=lambda inst: inst.fraction, default=None)

    def format(self) -> str:
        lines = [f"=== PRAYER SCHEDULE {self.day:%Y-%m-%d} ==="]
        for inst in sorted(self.instants, key=lambda inst: inst.fraction):
            status = "[COMPLETED]" if inst.prayer in self.fired else "[PENDING]"
            lines.append(f"{inst.prayer.label:<8}: {inst.at:%H:%M} {status}")
        return "\n".join(lines)


def sun_altitude(hour: float, day_of_year: int, latitude: float) -> float:
    "Sun elevation in degrees at local solar ``hour``."
    decl = math.radians(declination(day_of_year))
    lat = math.radians(latitude)
    hour_angle = math.radians(15.0 * (hour - 12.0))
    sin_alt = math.sin(lat) * math.sin(decl) + math.cos(lat) * math.cos(decl) * math.cos(
        hour_angle
    )
    return math.degrees(math.asin(util.clamp(sin_alt, -1.0, 1.0)))


def daylight_ratio(day_of_year: int, latitude: float) -> float:
    "Share of the day the sun is up; 0.5 is equal day and night."
    decl = math.radians(declination(day_of_year))
    cos_h = -math.tan(math.radians(latitude)) * math.tan(decl)
    return math.degrees(math.acos(util.clamp(cos_h, -1.0, 1.0))) / 180.0
