"""
AI Gateway - provider routing with a semantic response cache.

This package puts one entry point in front of several AI providers:
- OpenAI and Anthropic models through their SDKs
- Self-hosted models behind an OpenAI-compatible HTTP API

Features:
- Deterministic provider scoring (health, latency, cost, capability, load)
- Response cache with fuzzy matching, adaptive TTL and compression
- Periodic health probing with degraded/unhealthy states
- Daily and monthly spend caps per provider
- FIFO request queue with a bounded dispatcher
"""

__version__ = "0.1.0"

from .api.gateway import Gateway, create_gateway
from .cache import ResponseCache
from .config import CacheConfig, GatewayConfig, SimilarityConfig
from .errors import (
    CachePersistenceError,
    CostLimitExceeded,
    GatewayError,
    GatewayStopped,
    NoHealthyProvider,
)
from .models import (
    GatewayRequest,
    GatewayResponse,
    HealthStatus,
    ProviderConfig,
    RequestPriority,
    RequestType,
)
from .providers import ProviderClient, ProviderInvocationError

__all__ = [
    # Facade
    "Gateway",
    "create_gateway",
    "ResponseCache",

    # Configuration
    "GatewayConfig",
    "CacheConfig",
    "SimilarityConfig",

    # Errors
    "GatewayError",
    "NoHealthyProvider",
    "CostLimitExceeded",
    "GatewayStopped",
    "CachePersistenceError",
    "ProviderInvocationError",

    # Models
    "GatewayRequest",
    "GatewayResponse",
    "ProviderConfig",
    "HealthStatus",
    "RequestType",
    "RequestPriority",

    # Extension point
    "ProviderClient",
]
