"""Public API layer: the gateway facade and its composition root."""

from .gateway import Gateway, GatewayStats, create_gateway

__all__ = ["Gateway", "GatewayStats", "create_gateway"]
