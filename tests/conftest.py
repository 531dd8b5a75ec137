from typing import TypeVar

import pytest

from hilal.bus import Bus, Signal
from hilal.clock import GameClock
from hilal.config import Settings
from hilal.hijri import HijriCalendar
from hilal.holidays import HolidayRegistry
from hilal.scheduler import DayCycleScheduler


T = TypeVar("T", bound=Signal)


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio")


@pytest.fixture
def cfg() -> Settings:
    return Settings(_env_file=None, init_retry_delay=0.01)


@pytest.fixture
def bus() -> Bus:
    return Bus()


@pytest.fixture
def clock(bus: Bus, cfg: Settings) -> GameClock:
    return GameClock.from_settings(cfg, bus)


@pytest.fixture
def calendar(cfg: Settings) -> HijriCalendar:
    return HijriCalendar(base_date=cfg.base_date)


@pytest.fixture
def scheduler(
    clock: GameClock, calendar: HijriCalendar, bus: Bus, cfg: Settings
) -> DayCycleScheduler:
    return DayCycleScheduler(
        clock=clock, calendar=calendar, holidays=HolidayRegistry(), bus=bus, cfg=cfg
    )


class Recorder:
    """Runs ticks the way the host does and keeps every signal pulsed."""

    def __init__(self, clock: GameClock, scheduler: DayCycleScheduler, bus: Bus):
        self.clock = clock
        self.scheduler = scheduler
        self.bus = bus
        self.seen: list[Signal] = []

    def tick(self) -> list[Signal]:
        self.scheduler.evaluate()
        out = list(self.bus.pulsed)
        self.seen.extend(out)
        self.bus.clear()
        return out

    def hours(self, hours: float, step: float = 0.25) -> None:
        for _ in range(round(hours / step)):
            self.clock.add_hours(step)
            self.tick()

    def of(self, cls: type[T]) -> list[T]:
        return [sig for sig in self.seen if isinstance(sig, cls)]


@pytest.fixture
def recorder(clock: GameClock, scheduler: DayCycleScheduler, bus: Bus) -> Recorder:
    return Recorder(clock, scheduler, bus)
