from .base import EventSink
from .in_memory import EventSummary, InMemoryEventSink
from .channel import LoggingEventSink, QueueEventSink

__all__ = [
    "EventSink",
    "EventSummary",
    "InMemoryEventSink",
    "LoggingEventSink",
    "QueueEventSink",
]
