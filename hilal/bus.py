import logging
from collections import defaultdict
from collections.abc import Callable, Iterator
from dataclasses import dataclass as signal
from datetime import datetime
from typing import TypeVar, cast

from hilal.hijri import HijriDate
from hilal.holidays import HolidayWindow
from hilal.prayer import Prayer

log = logging.getLogger(__name__)


class Signal:
    pass


T = TypeVar("T", bound=Signal)


@signal(frozen=True, slots=True, kw_only=True)
class ClockHour(Signal):
    "The clock's integer hour changed."

    hour: int
    day_index: int


@signal(frozen=True, slots=True, kw_only=True)
class ClockDay(Signal):
    "The clock's day index changed."

    day_index: int
    previous: int


@signal(frozen=True, slots=True, kw_only=True)
class HourChanged(Signal):
    """A new in-game hour began."""

    hour: int


@signal(frozen=True, slots=True, kw_only=True)
class DayChanged(Signal):
    """A new in-game day began; calendar and prayers were recomputed."""

    date: HijriDate
    day_index: int


@signal(frozen=True, slots=True, kw_only=True)
class PrayerTime(Signal):
    """It is time for a prayer."""

    prayer: Prayer
    at: datetime


@signal(frozen=True, slots=True, kw_only=True)
class HolidayEnter(Signal):
    window: HolidayWindow


@signal(frozen=True, slots=True, kw_only=True)
class HolidayExit(Signal):
    window: HolidayWindow


Handler = Callable[[Signal], None]


class Bus:
    """Per-frame signal queues.

    Producers ``pulse`` during a frame, consumers either ``iter`` a queue or
    ``connect`` a handler that ``dispatch`` calls. The host ``clear``s at the
    end of every frame.
    """

    def __init__(self) -> None:
        self.qs: dict[type[Signal], list[Signal]] = defaultdict(list)
        self.handlers: dict[type[Signal], list[Handler]] = defaultdict(list)
        self.pulsed: list[Signal] = []

    def is_empty(self, cls: type[T]) -> bool:
        return not bool(self.qs[cls])

    def iter(self, cls: type[T]) -> Iterator[T]:
        "Get signals of type T."
        yield from cast(list[T], self.qs[cls])

    def pulse(self, *sigs: Signal) -> None:
        "Route signals into their queues."
        for sig in sigs:
            self.qs[type(sig)].append(sig)
            self.pulsed.append(sig)

    def connect(self, cls: type[T], fn: Callable[[T], None]) -> None:
        self.handlers[cls].append(cast(Handler, fn))

    def disconnect(self, cls: type[T], fn: Callable[[T], None]) -> None:
        self.handlers[cls].remove(cast(Handler, fn))

    def dispatch(self) -> None:
        "Hand every queued signal, in pulse order, to its connected handlers."
        for sig in list(self.pulsed):
            for fn in list(self.handlers.get(type(sig), ())):
                try:
                    fn(sig)
                except Exception:
                    log.exception("handler failed for %s", type(sig).__name__)

    def clear(self) -> None:
        "Clear all signal queues."
        for q in self.qs.values():
            q.clear()
        self.pulsed.clear()
