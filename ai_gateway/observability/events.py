"""
Request lifecycle events emitted by the gateway facade.

Events are handed to an ``EventSink`` in the order the facade produces
them; the facade awaits each emission.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..models.requests import GatewayRequest, GatewayResponse


class EventType(str, Enum):
    REQUEST_COMPLETED = "requestCompleted"
    REQUEST_FAILED = "requestFailed"


@dataclass
class GatewayEvent:
    """Base class for gateway events."""
    request: GatewayRequest
    latency_ms: float
    timestamp: float = field(default_factory=time.time)
    event_type: EventType = EventType.REQUEST_COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "request_id": self.request.id,
            "request_type": self.request.type.value,
            "latency_ms": self.latency_ms,
            "timestamp": self.timestamp,
        }


@dataclass
class RequestCompleted(GatewayEvent):
    """A request was answered, either from cache or by a provider."""
    response: Optional[GatewayResponse] = None
    event_type: EventType = field(default=EventType.REQUEST_COMPLETED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.response is not None:
            data.update(
                provider_id=self.response.provider_id,
                model=self.response.model,
                cost=self.response.cost,
                cached=self.response.cached,
            )
        return data


@dataclass
class RequestFailed(GatewayEvent):
    """A request failed during routing, admission or the provider call."""
    error: Optional[BaseException] = None
    event_type: EventType = field(default=EventType.REQUEST_FAILED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.error is not None:
            data.update(error_type=type(self.error).__name__, error_message=str(self.error))
        return data
