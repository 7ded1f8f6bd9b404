"""Cancellable periodic timer for live views."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class PeriodicTicker:
    """Calls callback every interval seconds until stopped. The first call is one interval after start()."""

    def __init__(self, interval: float, callback: TickCallback):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.ticks += 1
            try:
                result = self._callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                # one bad tick must not end the timer
                logger.exception("Tick callback failed")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
