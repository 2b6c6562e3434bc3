"""Event sinks that forward events to logs or to a bounded outbound channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..events import EventType, GatewayEvent
from .base import EventSink


class LoggingEventSink(EventSink):
    """Writes each event as one structured log line."""

    def __init__(self, logger_name: str = "ai_gateway.events"):
        self._logger = logging.getLogger(logger_name)

    async def emit(self, event: GatewayEvent) -> None:
        level = logging.INFO if event.event_type == EventType.REQUEST_COMPLETED else logging.WARNING
        fields = " ".join(f"{k}={v}" for k, v in event.to_dict().items() if v is not None)
        self._logger.log(level, f"[{fields}] {event.event_type.value}")

    async def flush(self) -> None:
        pass


class QueueEventSink(EventSink):
    """
    Outbound channel backed by a bounded ``asyncio.Queue``.

    ``emit`` waits while the queue is full, so a slow consumer applies
    backpressure to the gateway. Consumers read with ``get()``.
    """

    def __init__(self, max_size: int = 1000):
        self._queue: "asyncio.Queue[GatewayEvent]" = asyncio.Queue(maxsize=max_size)

    async def emit(self, event: GatewayEvent) -> None:
        await self._queue.put(event)

    async def get(self, timeout: Optional[float] = None) -> GatewayEvent:
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def get_nowait(self) -> GatewayEvent:
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    async def flush(self) -> None:
        pass
