"""Parts of the in-game day."""

from enum import Enum


class DayPart(Enum):
    """Parts of the day as island life splits them."""

    NIGHT = "night"  # 7pm-5am
    MORNING = "morning"  # 5am-12pm
    AFTERNOON = "afternoon"  # 12pm-5pm
    EVENING = "evening"  # 5pm-7pm


def get_daypart(*, hour: float) -> DayPart:
    """Get the part of the day for an hour in [0, 24).

    Boundaries:
    - Night: 7pm (19) to 5am (5)
    - Morning: 5am (5) to noon (12)
    - Afternoon: noon (12) to 5pm (17)
    - Evening: 5pm (17) to 7pm (19)
    """
    if hour >= 19 or hour < 5:
        return DayPart.NIGHT
    if hour < 12:
        return DayPart.MORNING
    if hour < 17:
        return DayPart.AFTERNOON
    return DayPart.EVENING


def is_night(hour: float) -> bool:
    return get_daypart(hour=hour) == DayPart.NIGHT


def is_day(hour: float) -> bool:
    return not is_night(hour)


def is_morning(hour: float) -> bool:
    return get_daypart(hour=hour) == DayPart.MORNING


def is_afternoon(hour: float) -> bool:
    return get_daypart(hour=hour) == DayPart.AFTERNOON


def is_evening(hour: float) -> bool:
    # Wider than DayPart.EVENING; the evening social hours run into the night.
    return 17 <= hour < 21


def local_name(hour: float) -> str:
    """Dhivehi name for the time of day."""
    if 5 <= hour < 6:
        return "Faajuru"
    if 6 <= hour < 12:
        return "Hen'dhun"
    if 12 <= hour < 16:
        return "Re'ndi"
    if 16 <= hour < 18:
        return "Handhaan"
    if 18 <= hour < 19:
        return "Maghrib"
    return "Kandu"
