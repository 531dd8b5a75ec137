"""Vectorised look-ahead over runs of clock days.

Planning code (mission windows, NPC routines) asks about days that are not
today. These helpers answer for many days at once with numpy. They are
approximate in one way only: moon sighting is ignored. They are pure and
return fresh arrays, so they can run off the main tick.
"""

from collections.abc import Sequence
from datetime import date

import numpy as np
from numpy.typing import ArrayLike, NDArray

from hilal import hijri
from hilal.holidays import HolidayRegistry, HolidayWindow
from hilal.prayer import AXIAL_TILT, DEFAULT_SOLAR_NOON_HOUR, PRAYERS, SIMPLIFIED_HOURS

MINUTES_PER_DAY = 1440.0


def day_range(start: int, count: int) -> NDArray[np.int64]:
    return np.arange(start, start + count, dtype=np.int64)


def julian_days(base_date: date, day_indices: ArrayLike) -> NDArray[np.float64]:
    return hijri.julian_day(base_date) + np.asarray(day_indices, dtype=np.int64)


def hijri_table(
    base_date: date, day_indices: ArrayLike, offset: int = 0
) -> NDArray[np.int64]:
    """(n, 3) array of Hijri year, month, day per day index.

    Closed form of the same 30-year arithmetic cycle as ``hijri``.
    """
    days = np.floor(julian_days(base_date, day_indices) + offset - hijri.ISLAMIC_EPOCH)
    days = days.astype(np.int64)

    year = np.maximum(1, (30 * days + 10646) // hijri.CYCLE_DAYS)
    ystart = (year - 1) * hijri.COMMON_YEAR_DAYS + (3 + 11 * year) // hijri.CYCLE_YEARS
    into = np.maximum(0, days - ystart)

    month = np.ceil((into - 29) / 29.5).astype(np.int64) + 1
    month = np.clip(month, 1, 12)
    mstart = np.ceil(29.5 * (month - 1)).astype(np.int64)
    day = np.clip(into - mstart + 1, 1, 30)

    return np.stack([year, month, day], axis=1)


def day_of_year(base_date: date, day_indices: ArrayLike) -> NDArray[np.int64]:
    dts = np.datetime64(base_date, "D") + np.asarray(day_indices, dtype=np.int64)
    jan1 = dts.astype("datetime64[Y]").astype("datetime64[D]")
    return (dts - jan1).astype(np.int64) + 1


def prayer_table(
    base_date: date,
    day_indices: ArrayLike,
    *,
    solar_noon_hour: float = DEFAULT_SOLAR_NOON_HOUR,
    astronomical: bool = True,
) -> NDArray[np.float64]:
    """(n, 5) array of prayer day fractions, columns in ``PRAYERS`` order."""
    doy = day_of_year(base_date, day_indices)
    if not astronomical:
        row = np.array([SIMPLIFIED_HOURS[p] / 24.0 for p in PRAYERS])
        return np.tile(row, (len(doy), 1))

    decl = AXIAL_TILT * np.sin(np.radians(360.0 / 365.0 * (284 + doy)))
    ratio = np.abs(decl) / AXIAL_TILT
    maghrib = 375.0 - 30.0 * ratio
    offsets = np.stack(
        [
            -(75.0 + 15.0 * ratio),
            np.zeros_like(ratio),
            180.0 + 60.0 * ratio,
            maghrib,
            maghrib + 90.0 + 30.0 * ratio,
        ],
        axis=1,
    )
    return ((solar_noon_hour * 60.0 + offsets) / MINUTES_PER_DAY) % 1.0


def active_windows(
    registry: HolidayRegistry, table: NDArray[np.int64]
) -> list[HolidayWindow | None]:
    """The active holiday per row of a ``hijri_table``; first match wins."""
    month, day = table[:, 1], table[:, 2]
    winner = np.full(len(table), -1, dtype=np.int64)
    windows: Sequence[HolidayWindow] = registry.windows
    for i, w in enumerate(windows):
        hit = (month == w.month) & (day >= w.day) & (day < w.day + w.duration_days)
        winner[(winner < 0) & hit] = i
    return [windows[i] if i >= 0 else None for i in winner.tolist()]


def holiday_days(
    registry: HolidayRegistry,
    base_date: date,
    day_indices: ArrayLike,
    offset: int = 0,
) -> dict[str, NDArray[np.int64]]:
    """Day indices on which each holiday is the active one."""
    indices = np.asarray(day_indices, dtype=np.int64)
    table = hijri_table(base_date, indices, offset)
    active = active_windows(registry, table)
    out: dict[str, NDArray[np.int64]] = {}
    for w in registry.windows:
        mask = np.array([a is not None and a.name == w.name for a in active], dtype=bool)
        if mask.any():
            out[w.name] = indices[mask]
    return out
