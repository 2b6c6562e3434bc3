"""
Deferred request execution.

``RequestQueue`` is a strictly FIFO list of pending requests, each paired
with the future its caller awaits. ``QueueDispatcher`` pops one request per
tick and runs it in a bounded set of worker slots, so a slow provider call
never blocks later ticks.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, List, Optional, Set

from ..errors import GatewayStopped
from ..models.requests import GatewayRequest, GatewayResponse
from .background import PeriodicTask

logger = logging.getLogger(__name__)

RequestHandler = Callable[[GatewayRequest], Awaitable[GatewayResponse]]


@dataclass
class QueuedRequest:
    request: GatewayRequest
    future: asyncio.Future
    enqueued_at: float


class RequestQueue:
    """FIFO of pending requests guarded by one lock."""

    def __init__(self):
        self._items: Deque[QueuedRequest] = deque()
        self._lock = asyncio.Lock()

    async def put(self, request: GatewayRequest) -> asyncio.Future:
        """Append a request and return the future that resolves with its outcome."""
        loop = asyncio.get_running_loop()
        item = QueuedRequest(request=request, future=loop.create_future(), enqueued_at=loop.time())
        async with self._lock:
            self._items.append(item)
        return item.future

    async def pop(self) -> Optional[QueuedRequest]:
        """Remove and return the oldest request, or None when empty."""
        async with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    async def pop_all(self) -> List[QueuedRequest]:
        """Remove and return every pending request, oldest first."""
        async with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def pending(self) -> List[GatewayRequest]:
        return [item.request for item in self._items]

    def __len__(self) -> int:
        return len(self._items)


class QueueDispatcher(PeriodicTask):
    """
    Drains a ``RequestQueue`` one item per tick.

    At most ``max_in_flight`` requests run at once; when every slot is busy
    the tick waits for one to free up before popping.
    """

    def __init__(
        self,
        queue: RequestQueue,
        handler: RequestHandler,
        interval: float = 0.1,
        max_in_flight: int = 8,
    ):
        super().__init__("queue-dispatcher", interval)
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be at least 1, got {max_in_flight}")
        self.queue = queue
        self.handler = handler
        self.max_in_flight = max_in_flight
        self._slots = asyncio.Semaphore(max_in_flight)
        self._workers: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._workers)

    async def tick(self) -> None:
        await self._slots.acquire()
        try:
            item = await self.queue.pop()
        except BaseException:
            self._slots.release()
            raise
        if item is None:
            self._slots.release()
            return

        worker = asyncio.create_task(self._run_item(item))
        self._workers.add(worker)
        worker.add_done_callback(self._workers.discard)

    async def _run_item(self, item: QueuedRequest) -> None:
        try:
            if item.future.cancelled():
                return
            try:
                response = await self.handler(item.request)
            except asyncio.CancelledError:
                if not item.future.done():
                    item.future.cancel()
                raise
            except Exception as e:
                if not item.future.done():
                    item.future.set_exception(e)
                logger.debug(
                    f"Queued request {item.request.id} failed: {e}",
                    extra={"request_id": item.request.id, "error_type": type(e).__name__},
                )
            else:
                if not item.future.done():
                    item.future.set_result(response)
        finally:
            self._slots.release()

    async def drain(self) -> None:
        """Wait for every in-flight worker to finish."""
        if self._workers:
            await asyncio.gather(*list(self._workers), return_exceptions=True)

    async def abandon_pending(self) -> int:
        """Fail every request still waiting in the queue with ``GatewayStopped``."""
        abandoned = 0
        for item in await self.queue.pop_all():
            if item.future.done():
                continue
            item.future.set_exception(GatewayStopped(request_id=item.request.id))
            abandoned += 1
        return abandoned
