from .requests import (
    GatewayRequest,
    GatewayResponse,
    RequestPriority,
    RequestType,
    TokenUsage,
)
from .providers import CostLimit, ProviderConfig, ProviderVendor, RateLimit
from .cache import CacheEntry, CacheEntryMetadata, CacheSnapshot, CacheStats
from .health import HealthStatus, ProviderHealth

__all__ = [
    "GatewayRequest",
    "GatewayResponse",
    "RequestPriority",
    "RequestType",
    "TokenUsage",
    "CostLimit",
    "ProviderConfig",
    "ProviderVendor",
    "RateLimit",
    "CacheEntry",
    "CacheEntryMetadata",
    "CacheSnapshot",
    "CacheStats",
    "HealthStatus",
    "ProviderHealth",
]
