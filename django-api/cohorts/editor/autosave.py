"""Debounced autosave built on asyncio tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class Debouncer:
    """Run a coroutine callback once input has been quiet for ``delay`` seconds.

    Each trigger() restarts the countdown. Once the countdown elapses the
    callback is detached from the timer, so a later trigger() or cancel()
    never interrupts a save already in flight.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[Any]]):
        self.delay = delay
        self._callback = callback
        self._timer: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def trigger(self) -> None:
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._countdown())

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def flush(self) -> None:
        """Drop the countdown and run the callback now."""
        self.cancel()
        await self._callback()

    async def wait(self) -> None:
        """Wait for the pending countdown and any callbacks it started."""
        if self._timer is not None:
            await asyncio.gather(self._timer, return_exceptions=True)
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _countdown(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._callback())
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        task.add_done_callback(_log_failure)


def _log_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Autosave callback failed", exc_info=exc)
