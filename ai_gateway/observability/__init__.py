"""Observability layer for request events and structured logging.

This layer handles:
- Request lifecycle events (completed / failed)
- Event sinks (in-memory, logging, bounded channel)
- Structured component logging
"""

from .events import EventType, GatewayEvent, RequestCompleted, RequestFailed
from .logging import GatewayLogger
from .sinks import (
    EventSink,
    EventSummary,
    InMemoryEventSink,
    LoggingEventSink,
    QueueEventSink,
)

__all__ = [
    # Events
    "EventType",
    "GatewayEvent",
    "RequestCompleted",
    "RequestFailed",

    # Sinks
    "EventSink",
    "EventSummary",
    "InMemoryEventSink",
    "LoggingEventSink",
    "QueueEventSink",

    # Logging
    "GatewayLogger",
]
