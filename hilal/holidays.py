"""Recurring Hijri holiday windows.

The table is configuration, not computation. Windows are matched in registry
order and the first active one wins; overlapping windows are not tracked
simultaneously.
"""

import logging
from collections.abc import Iterable, Iterator
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from hilal import util
from hilal.hijri import HijriDate

log = logging.getLogger(__name__)

MIN_DURATION = 1
MAX_DURATION = 10


class Category(StrEnum):
    RELIGIOUS = "religious"
    CULTURAL = "cultural"
    NATIONAL = "national"


class HolidayWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    month: int
    day: int
    duration_days: int = 1
    category: Category = Category.RELIGIOUS
    fires_event: bool = True

    @field_validator("duration_days")
    @classmethod
    def clamp_duration(cls, v: int) -> int:
        out = int(util.clamp(v, MIN_DURATION, MAX_DURATION))
        if out != v:
            log.warning("holiday duration clamped %s", util.tags(got=v, used=out))
        return out

    @field_validator("month")
    @classmethod
    def clamp_month(cls, v: int) -> int:
        out = int(util.clamp(v, 1, 12))
        if out != v:
            log.warning("holiday month clamped %s", util.tags(got=v, used=out))
        return out

    @field_validator("day")
    @classmethod
    def clamp_day(cls, v: int) -> int:
        out = int(util.clamp(v, 1, 30))
        if out != v:
            log.warning("holiday day clamped %s", util.tags(got=v, used=out))
        return out

    def contains(self, d: HijriDate) -> bool:
        return d.month == self.month and self.day <= d.day < self.day + self.duration_days


# Narrow windows come before the wide ones that would otherwise shadow them.
DEFAULT_HOLIDAYS: tuple[HolidayWindow, ...] = (
    HolidayWindow(name="Islamic New Year", month=1, day=1),
    HolidayWindow(name="Ashura", month=1, day=10),
    HolidayWindow(name="National Day", month=3, day=1, category=Category.NATIONAL),
    HolidayWindow(name="Mawlid al-Nabi", month=3, day=12),
    HolidayWindow(name="Huravee Day", month=3, day=29, category=Category.NATIONAL),
    HolidayWindow(
        name="Day Maldives Embraced Islam",
        month=4,
        day=1,
        category=Category.NATIONAL,
    ),
    HolidayWindow(name="Isra and Miraj", month=7, day=27),
    HolidayWindow(
        name="Nisf Shaban",
        month=8,
        day=15,
        category=Category.CULTURAL,
        fires_event=False,
    ),
    HolidayWindow(name="Beginning of Ramadan", month=9, day=1),
    HolidayWindow(name="Laylat al-Qadr", month=9, day=27),
    HolidayWindow(name="Eid al-Fitr", month=10, day=1, duration_days=3),
    HolidayWindow(name="Day of Arafah", month=12, day=9),
    HolidayWindow(name="Eid al-Adha", month=12, day=10, duration_days=4),
)

WINDOWS = TypeAdapter(list[HolidayWindow])


class HolidayRegistry:
    def __init__(self, windows: Iterable[HolidayWindow | dict] = DEFAULT_HOLIDAYS):
        self.windows: tuple[HolidayWindow, ...] = tuple(
            w if isinstance(w, HolidayWindow) else HolidayWindow.model_validate(w)
            for w in windows
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "HolidayRegistry":
        return cls(WINDOWS.validate_json(text))

    @classmethod
    def load(cls, path: Path | None = None) -> "HolidayRegistry":
        if path is None:
            return cls()
        registry = cls.from_json(path.read_bytes())
        log.info("loaded holidays %s", util.tags(path=path, count=len(registry)))
        return registry

    def __iter__(self) -> Iterator[HolidayWindow]:
        return iter(self.windows)

    def __len__(self) -> int:
        return len(self.windows)

    def active(self, d: HijriDate) -> HolidayWindow | None:
        "First window containing ``d``, in registry order."
        for window in self.windows:
            if window.contains(d):
                return window
        return None

    def named(self, name: str) -> HolidayWindow | None:
        for window in self.windows:
            if window.name == name:
                return window
        return None
