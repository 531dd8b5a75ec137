import asyncio
import logging
import time
from contextlib import asynccontextmanager

from hilal.bus import Bus
from hilal.clock import GameClock
from hilal.config import Settings
from hilal.config import settings as default_settings
from hilal.hijri import HijriCalendar
from hilal.holidays import HolidayRegistry
from hilal.scheduler import DayCycleScheduler

MAX_LATE_RESET = 0.25

# for exponential moving average:
HALF_LIFE_SECONDS = 30

log = logging.getLogger(__name__)


class State:
    """Owns the clock and scheduler and ticks them at a fixed rate.

    A frame advances the clock, lets the scheduler evaluate, hands the
    frame's signals to connected handlers and clears the bus.
    """

    def __init__(
        self,
        *,
        clock: GameClock,
        scheduler: DayCycleScheduler,
        bus: Bus,
        cfg: Settings | None = None,
    ):
        self.cfg = cfg or default_settings
        self.clock = clock
        self.scheduler = scheduler
        self.bus = bus
        self.frames = 0
        self.jitter_ema = 0.0
        self._task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "State":
        cfg = cfg or default_settings
        bus = Bus()
        clock = GameClock.from_settings(cfg, bus)
        scheduler = DayCycleScheduler(
            clock=clock,
            calendar=HijriCalendar.from_settings(cfg),
            holidays=HolidayRegistry.load(cfg.holidays_file),
            bus=bus,
            cfg=cfg,
        )
        return cls(clock=clock, scheduler=scheduler, bus=bus, cfg=cfg)

    @property
    def step_seconds(self) -> float:
        return 1.0 / self.cfg.tps

    @property
    def alpha(self) -> float:
        return 1 - 2 ** (-1 / (HALF_LIFE_SECONDS * self.cfg.tps))

    @asynccontextmanager
    async def running(self):
        try:
            await self.aopen()
            yield self
        finally:
            await self.aclose()

    async def aopen(self):
        log.info("Starting state.")
        await self.scheduler.start()
        self._task = asyncio.get_running_loop().create_task(self.step())
        log.info("Started state.")

    async def aclose(self):
        log.info("Ending state.")
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("Ended state.")

    def frame(self, dt: float) -> None:
        self.clock.advance(dt)
        self.scheduler.evaluate()
        self.bus.dispatch()
        self.bus.clear()
        self.frames += 1

    async def step(self) -> None:
        last_logged_sec = 0
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        prev_ns = time.perf_counter_ns()

        while True:
            frame_start_ns = time.perf_counter_ns()
            dt = (frame_start_ns - prev_ns) * 1e-9
            prev_ns = frame_start_ns

            self.frame(dt)

            deadline += self.step_seconds
            delay = deadline - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            else:
                # We're late.
                late = -delay
                if late > MAX_LATE_RESET:
                    deadline = loop.time()

            now = loop.time()
            jitter = now - deadline
            self.jitter_ema = (1 - self.alpha) * self.jitter_ema + self.alpha * jitter
            current_sec = int(now)
            if current_sec % HALF_LIFE_SECONDS == 0 and current_sec != last_logged_sec:
                log.info("jitter_ema=%.6f", self.jitter_ema)
                last_logged_sec = current_sec
