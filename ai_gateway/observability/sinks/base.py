"""Base interface for event sinks."""

from typing import Protocol
from ..events import GatewayEvent


class EventSink(Protocol):
    """Protocol for event sink implementations."""

    async def emit(self, event: GatewayEvent) -> None:
        """Deliver one event."""
        ...

    async def flush(self) -> None:
        """Flush any buffered events."""
        ...
