"""
Fixed-interval background tasks.

Each task owns one ``asyncio.Task`` and can be started and stopped on its
own. A failing tick is logged and the loop keeps its cadence.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

TickCallable = Callable[[], Union[Awaitable[None], None]]


class PeriodicTask:
    """Run ``tick`` every ``interval`` seconds until stopped.

    ``stop()`` sets a stop flag before cancelling, so the loop still exits
    when a tick absorbs the cancellation.
    """

    def __init__(self, name: str, interval: float, tick: Optional[TickCallable] = None):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self._tick = tick
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop. Starting twice is a no-op."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stopping), name=self.name)
        logger.debug(f"Started background task {self.name}", extra={"task": self.name})

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        if self._stopping is not None:
            self._stopping.set()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Stopped background task {self.name}", extra={"task": self.name})

    async def tick(self) -> None:
        """One unit of work. Subclasses override this or pass ``tick`` to the constructor."""
        if self._tick is None:
            return
        result = self._tick()
        if inspect.isawaitable(result):
            await result

    async def _run(self, stopping: asyncio.Event) -> None:
        while not stopping.is_set():
            await asyncio.sleep(self.interval)
            if stopping.is_set():
                break
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Error in background task {self.name}: {e}",
                    extra={"task": self.name, "error_type": type(e).__name__},
                )
