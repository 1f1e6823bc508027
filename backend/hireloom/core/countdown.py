"""
Cancellable one-second countdown driven by an asyncio task.
"""

import asyncio
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class CountdownTimer:
    """
    Calls ``on_tick`` every ``interval`` seconds until cancelled.

    One timer belongs to one exam session. ``cancel`` is safe to call
    repeatedly and from inside ``on_tick``; no tick fires after it.
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = 1.0):
        self._on_tick = on_tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled

    def start(self) -> None:
        """Schedule the ticking task on the running event loop."""
        if self._task is not None:
            raise RuntimeError("Countdown already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                break
            self._on_tick()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Countdown cancelled")

    async def wait(self) -> None:
        """Wait until the ticking task has finished."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
