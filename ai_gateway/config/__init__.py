from .settings import (
    CacheConfig,
    GatewayConfig,
    SimilarityAlgorithm,
    SimilarityConfig,
    StorageBackend,
)
from .providers import PROVIDER_CONFIGS, get_default_providers

__all__ = [
    "CacheConfig",
    "GatewayConfig",
    "SimilarityAlgorithm",
    "SimilarityConfig",
    "StorageBackend",
    "PROVIDER_CONFIGS",
    "get_default_providers",
]
