"""One-second countdown task owned by a single attempt."""

from __future__ import annotations

import asyncio
import math
from typing import Awaitable, Callable

from classroom.core.logging_config import get_logger

logger = get_logger("attempts.countdown")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class Countdown:
    """
    Ticks towards a fixed deadline and fires ``on_expire`` exactly once.

    Remaining time is always derived from the deadline and the clock, so a
    delayed or coalesced tick never stretches the time limit. ``cancel`` is
    safe to call from any exit path, any number of times, including from
    inside ``on_expire``.
    """

    def __init__(
        self,
        deadline: float,
        *,
        clock: Clock,
        sleep: Sleep,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        interval: float = 1.0,
    ) -> None:
        self._deadline = deadline
        self._clock = clock
        self._sleep = sleep
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def remaining(self) -> int:
        return max(0, math.ceil(self._deadline - self._clock()))

    def start(self) -> None:
        if self.active:
            raise RuntimeError("Countdown already running")
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        try:
            while True:
                await self._sleep(min(self._interval, max(self._deadline - self._clock(), 0)))
                remaining = self.remaining()
                self._on_tick(remaining)
                if remaining == 0:
                    # Detach first so on_expire may call cancel() on us
                    self._task = None
                    self._on_expire()
                    return
        except asyncio.CancelledError:
            logger.debug("Countdown cancelled with %ss left", self.remaining())
            raise
