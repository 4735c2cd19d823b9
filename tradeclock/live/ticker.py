"""Asyncio ticker that re-evaluates the board on wall-clock minute boundaries."""

from __future__ import annotations

import asyncio
import datetime as dt
import signal
from typing import Any, Awaitable, Callable

from tradeclock.core.clocks import Clock, SystemClock, seconds_to_next_minute
from tradeclock.core.logging_utils import get_logger

logger = get_logger("live.ticker")

TickCallback = Callable[[dt.datetime], Any]
Sleeper = Callable[[float], Awaitable[Any]]


class MinuteTicker:
    """Drive a callback once immediately and then every refresh period.

    With ``align_to_minute`` the wait is measured to the next minute boundary
    of the injected clock, so displayed minutes change as the clock rolls over.
    The callback gets the reference instant read from the clock for that tick.
    """

    def __init__(
        self,
        callback: TickCallback,
        clock: Clock | None = None,
        refresh_seconds: float = 60.0,
        align_to_minute: bool = True,
        sleeper: Sleeper | None = None,
    ):
        self.callback = callback
        self.clock = clock or SystemClock()
        self.refresh_seconds = refresh_seconds
        self.align_to_minute = align_to_minute
        self._sleep = sleeper or asyncio.sleep

        self._running = False
        self.ticks = 0
        self.errors = 0

    def _delay(self, instant: dt.datetime) -> float:
        if self.align_to_minute and self.refresh_seconds == 60:
            return seconds_to_next_minute(instant)
        return float(self.refresh_seconds)

    async def tick(self) -> dt.datetime:
        """Run the callback once against the current instant."""
        instant = self.clock()
        self.ticks += 1
        try:
            result = self.callback(instant)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            self.errors += 1
            logger.error(f"Tick callback failed at {instant.isoformat()}: {e}")
        return instant

    async def run(self, max_ticks: int | None = None) -> None:
        """Tick until stopped, cancelled, or ``max_ticks`` is reached."""
        logger.info(f"Starting ticker: refresh={self.refresh_seconds}s align={self.align_to_minute}")
        self._running = True

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                pass  # Not available on Windows or outside the main thread

        try:
            while self._running:
                instant = await self.tick()
                if max_ticks is not None and self.ticks >= max_ticks:
                    break
                await self._sleep(self._delay(instant))
        finally:
            self._running = False
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.remove_signal_handler(sig)
                except (NotImplementedError, RuntimeError):
                    pass
            logger.info(f"Ticker stopped after {self.ticks} ticks ({self.errors} errors)")

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running
