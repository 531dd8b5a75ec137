"""Hijri (lunar) calendar on a simplified arithmetic 30-year cycle.

Gregorian date -> Julian Day -> Hijri (year, month, day).

Months alternate 30/29 days starting with Muharram at 30. Dhu al-Hijjah gains
a 30th day in leap years, and leap years are the eleven cycle positions where
``(11 * year + 14) % 30 < 11``. A year is therefore 354 or 355 days and a full
cycle is 10631 days.

This is a gameplay calendar, not an Umm al-Qura table. Against published
dates expect a day or two of drift. Mission and holiday content is tuned
against this output, so do not "correct" it.
"""

import math
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta

from hilal import util
from hilal.config import Settings
from hilal.config import settings as default_settings


# Julian Day of 1 Muharram 1 AH (civil epoch, 16 July 622 Julian).
ISLAMIC_EPOCH: float = 1948439.5

CYCLE_YEARS: int = 30
CYCLE_DAYS: int = 10631
MEAN_YEAR_DAYS: float = CYCLE_DAYS / CYCLE_YEARS
COMMON_YEAR_DAYS: int = 354
LEAP_YEAR_DAYS: int = 355

# Hijri year of the default base date (2024-01-01).
BASE_YEAR: int = 1445

MUHARRAM = 1
RAJAB = 7
RAMADAN = 9
SHAWWAL = 10
DHU_AL_QIDAH = 11
DHU_AL_HIJJAH = 12
SACRED_MONTHS = frozenset({MUHARRAM, RAJAB, DHU_AL_QIDAH, DHU_AL_HIJJAH})

MONTH_NAMES: tuple[str, ...] = (
    "Muharram",
    "Safar",
    "Rabi al-Awwal",
    "Rabi al-Thani",
    "Jumada al-Awwal",
    "Jumada al-Thani",
    "Rajab",
    "Shaban",
    "Ramadan",
    "Shawwal",
    "Dhu al-Qadah",
    "Dhu al-Hijjah",
)
BASE_MONTH_LENGTHS: tuple[int, ...] = (30, 29, 30, 29, 30, 29, 30, 29, 30, 29, 30, 29)


def is_leap_year(year: int) -> bool:
    return (11 * year + 14) % CYCLE_YEARS < 11


# Leap positions within one cycle; derived from the rule so the two never diverge.
LEAP_CYCLE: frozenset[int] = frozenset(
    pos for pos in range(1, CYCLE_YEARS + 1) if is_leap_year(pos)
)


def year_length(year: int) -> int:
    return LEAP_YEAR_DAYS if is_leap_year(year) else COMMON_YEAR_DAYS


def year_start(year: int) -> int:
    """Days from the epoch to 1 Muharram of ``year``.

    Whole cycles are taken in one step, the remainder is walked through the
    cycle table.
    """
    cycles, rem = divmod(year - 1, CYCLE_YEARS)
    days = cycles * CYCLE_DAYS
    for pos in range(1, rem + 1):
        days += LEAP_YEAR_DAYS if pos in LEAP_CYCLE else COMMON_YEAR_DAYS
    return days


def month_lengths(year: int) -> tuple[int, ...]:
    if not is_leap_year(year):
        return BASE_MONTH_LENGTHS
    return BASE_MONTH_LENGTHS[:-1] + (30,)


def name_of_month(month: int) -> str:
    return MONTH_NAMES[int(util.clamp(month, 1, 12)) - 1]


def gregorian_to_julian_day(year: int, month: int, day: int) -> float:
    """Proleptic Gregorian date to Julian Day (midnight, hence the .5)."""
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day
        + b
        - 1524.5
    )


def julian_day(d: date) -> float:
    return gregorian_to_julian_day(d.year, d.month, d.day)


@dataclass(frozen=True, slots=True)
class MoonSighting:
    """Seeded stand-in for crescent observation.

    On the evening of the 29th of a 29-day month the crescent is either seen
    (the next day is the 1st of the new month) or not (the month runs to a
    30th day). The draw depends only on (seed, year, month), so repeated
    queries for the same date always agree.
    """

    seed: int = 0
    threshold: float = 0.5
    rng_factory: Callable[[str], random.Random] = field(
        default=random.Random, compare=False, repr=False
    )

    def draw(self, year: int, month: int) -> float:
        return self.rng_factory(f"{self.seed}:{year}:{month}").random()

    def extends(self, year: int, month: int) -> bool:
        "True if the crescent was missed and ``month`` runs to 30 days."
        return self.draw(year, month) > self.threshold


@dataclass(frozen=True, slots=True, order=True)
class HijriDate:
    year: int
    month: int
    day: int
    month_name: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.month_name:
            object.__setattr__(self, "month_name", name_of_month(self.month))

    @classmethod
    def make(cls, year: int, month: int, day: int) -> "HijriDate":
        "Build a date, clamping each part into its valid range."
        return cls(
            year=max(1, year),
            month=int(util.clamp(month, 1, 12)),
            day=int(util.clamp(day, 1, 30)),
        )

    def __str__(self) -> str:
        return f"{self.day} {self.month_name} {self.year} AH"

    @property
    def short(self) -> str:
        return f"{self.day}/{self.month}/{self.year}"

    def spoken(self) -> str:
        return f"the {util.ordinal_words(self.day)} of {self.month_name}"

    @property
    def is_ramadan(self) -> bool:
        return self.month == RAMADAN

    @property
    def is_sacred_month(self) -> bool:
        return self.month in SACRED_MONTHS

    @property
    def is_eid_al_fitr(self) -> bool:
        return self.month == SHAWWAL and self.day <= 3

    @property
    def is_eid_al_adha(self) -> bool:
        return self.month == DHU_AL_HIJJAH and 10 <= self.day <= 13


def julian_day_to_hijri(jd: float, sighting: MoonSighting | None = None) -> HijriDate:
    days = math.floor(jd - ISLAMIC_EPOCH)

    # Estimate, then settle on year_start(year) <= days < year_start(year + 1).
    year = max(1, int(days / MEAN_YEAR_DAYS) + 1)
    while year > 1 and year_start(year) > days:
        year -= 1
    while year_start(year + 1) <= days:
        year += 1

    into = max(0, days - year_start(year))
    month = 1
    for length in month_lengths(year):
        if into < length:
            break
        into -= length
        month += 1
    day = into + 1

    if sighting is not None:
        # A month after a 29-day month always has 30 days; an extended
        # predecessor takes its first day and it keeps 29.
        prev_year, prev_month = (year, month - 1) if month > 1 else (year - 1, 12)
        if (
            prev_year >= 1
            and month_lengths(prev_year)[prev_month - 1] == 29
            and sighting.extends(prev_year, prev_month)
        ):
            if day == 1:
                year, month, day = prev_year, prev_month, 30
            else:
                day -= 1

    return HijriDate.make(year, month, day)


def hijri_to_julian_day(year: int, month: int, day: int) -> float:
    "Inverse of the arithmetic model (moon sighting not applied)."
    month = int(util.clamp(month, 1, 12))
    before = sum(month_lengths(year)[: month - 1])
    return ISLAMIC_EPOCH + year_start(year) + before + day - 1


def day_of_year(d: HijriDate) -> int:
    return sum(month_lengths(d.year)[: d.month - 1]) + d.day


def days_until_ramadan(d: HijriDate) -> int:
    if d.is_ramadan:
        return 0
    current = day_of_year(d)
    start = day_of_year(HijriDate(year=d.year, month=RAMADAN, day=1))
    if current < start:
        return start - current
    return year_length(d.year) - current + start


class HijriCalendar:
    """Maps clock day indices onto Hijri dates.

    Day 0 is ``base_date`` in the Gregorian calendar. ``offset`` shifts the
    Julian Day before conversion; it is how a loaded save keeps its date.
    """

    def __init__(self, *, base_date: date, sighting: MoonSighting | None = None):
        self.base_date = base_date
        self.sighting = sighting

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "HijriCalendar":
        cfg = cfg or default_settings
        sighting = None
        if cfg.simulate_moon_sighting:
            sighting = MoonSighting(
                seed=cfg.moon_sighting_seed, threshold=cfg.moon_visibility_threshold
            )
        return cls(base_date=cfg.base_date, sighting=sighting)

    @property
    def seed(self) -> int:
        return self.sighting.seed if self.sighting else 0

    def reseed(self, seed: int) -> None:
        if self.sighting is None:
            return
        self.sighting = MoonSighting(
            seed=seed,
            threshold=self.sighting.threshold,
            rng_factory=self.sighting.rng_factory,
        )

    def gregorian(self, day_index: int) -> date:
        return self.base_date + timedelta(days=day_index)

    def julian_day(self, day_index: int) -> float:
        return julian_day(self.gregorian(day_index))

    def date_for(self, day_index: int, offset: int = 0) -> HijriDate:
        return julian_day_to_hijri(self.julian_day(day_index) + offset, self.sighting)

    def offset_for(self, d: HijriDate, day_index: int) -> int:
        """Day offset that makes ``date_for(day_index, offset)`` land on ``d``.

        With moon sighting on, the arithmetic offset can be a day out either
        way, so nearby offsets are tried closest first. A date sighting never
        produces (a 30th it took away) falls back to the arithmetic offset.
        """
        base = round(hijri_to_julian_day(d.year, d.month, d.day) - self.julian_day(day_index))
        if self.sighting is None:
            return base
        for offset in sorted(range(base - 2, base + 3), key=lambda o: abs(o - base)):
            if self.date_for(day_index, offset) == d:
                return offset
        return base
