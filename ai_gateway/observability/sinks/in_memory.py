"""
In-memory event sink for testing and debugging.

Stores events in a bounded buffer and provides simple query helpers,
useful for tests, debugging, and local development.
"""

from __future__ import annotations

import asyncio
import statistics
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from ..events import EventType, GatewayEvent, RequestCompleted, RequestFailed
from .base import EventSink


@dataclass
class EventSummary:
    """Summary statistics over the buffered events."""
    count: int = 0
    completed: int = 0
    failed: int = 0
    cached: int = 0
    avg_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    total_cost: float = 0.0
    providers: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, int] = field(default_factory=dict)


class InMemoryEventSink(EventSink):
    """Bounded in-memory event storage with query capabilities."""

    def __init__(self, max_size: int = 10000):
        self.max_size = max_size
        self._events: Deque[GatewayEvent] = deque(maxlen=max_size)
        self._lock = asyncio.Lock()

    async def emit(self, event: GatewayEvent) -> None:
        async with self._lock:
            self._events.append(event)

    async def flush(self) -> None:
        """No-op for in-memory sink."""
        pass

    @property
    def events(self) -> List[GatewayEvent]:
        return list(self._events)

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        request_id: Optional[str] = None,
    ) -> List[GatewayEvent]:
        """Return buffered events, optionally filtered, oldest first."""
        results = []
        for event in self._events:
            if event_type is not None and event.event_type != event_type:
                continue
            if request_id is not None and event.request.id != request_id:
                continue
            results.append(event)
        return results

    def get_summary(self) -> EventSummary:
        summary = EventSummary(count=len(self._events))
        latencies = []

        for event in self._events:
            latencies.append(event.latency_ms)
            if isinstance(event, RequestCompleted):
                summary.completed += 1
                if event.response is not None:
                    summary.total_cost += event.response.cost
                    if event.response.cached:
                        summary.cached += 1
                    elif event.response.provider_id:
                        provider = event.response.provider_id
                        summary.providers[provider] = summary.providers.get(provider, 0) + 1
            elif isinstance(event, RequestFailed):
                summary.failed += 1
                error_type = type(event.error).__name__ if event.error else "unknown"
                summary.errors[error_type] = summary.errors.get(error_type, 0) + 1

        if latencies:
            summary.avg_latency_ms = statistics.mean(latencies)
            if len(latencies) >= 2:
                summary.p95_latency_ms = statistics.quantiles(latencies, n=20)[-1]
            else:
                summary.p95_latency_ms = latencies[0]

        return summary

    def clear(self) -> None:
        self._events.clear()
