"""
Gateway configuration.

Options can be given as pydantic models, plain dicts (snake_case fields or
the camelCase dotted option names, e.g. ``cache.maxSize``) or environment
variables prefixed with ``AI_GATEWAY_``.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ..models.providers import ProviderConfig


class StorageBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
    FILE = "file"


class SimilarityAlgorithm(str, Enum):
    COSINE = "cosine"
    JACCARD = "jaccard"
    LEVENSHTEIN = "levenshtein"


class CacheConfig(BaseModel):
    """Response cache configuration. Durations are in seconds."""
    max_size: int = Field(default=10000, ge=1)
    default_ttl: float = Field(default=24 * 60 * 60, gt=0)
    compression_enabled: bool = True
    compression_threshold: int = Field(default=1000, ge=1)
    semantic_similarity: bool = True
    adaptive_ttl: bool = True
    adaptive_ttl_threshold: int = Field(default=10, ge=0)
    adaptive_ttl_multiplier: float = Field(default=1.5, ge=1.0)
    adaptive_ttl_max_factor: float = Field(default=7.0, ge=1.0)
    eviction_ratio: float = Field(default=0.1, gt=0.0, le=1.0)
    eviction_access_weight: float = 0.7
    eviction_idle_weight: float = -0.3
    storage_backend: StorageBackend = StorageBackend.MEMORY
    file_path: str = "ai-cache.json"
    redis_url: str = "redis://localhost:6379/0"
    redis_key: str = "ai-cache"
    cleanup_interval: float = Field(default=60 * 60, gt=0)

    @property
    def max_ttl(self) -> float:
        return self.default_ttl * self.adaptive_ttl_max_factor


class SimilarityConfig(BaseModel):
    """Fuzzy matching configuration."""
    threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    algorithm: SimilarityAlgorithm = SimilarityAlgorithm.COSINE


# camelCase option name -> (section, field, scale)
_OPTION_ALIASES = {
    "cache.maxSize": ("cache", "max_size", None),
    "cache.defaultTTL": ("cache", "default_ttl", 0.001),  # milliseconds
    "cache.compressionEnabled": ("cache", "compression_enabled", None),
    "cache.semanticSimilarity": ("cache", "semantic_similarity", None),
    "cache.adaptiveTTL": ("cache", "adaptive_ttl", None),
    "cache.storageBackend": ("cache", "storage_backend", None),
    "similarity.threshold": ("similarity", "threshold", None),
    "similarity.algorithm": ("similarity", "algorithm", None),
}

_ENV_OPTIONS = {
    "AI_GATEWAY_CACHE_MAX_SIZE": ("cache", "max_size"),
    "AI_GATEWAY_CACHE_DEFAULT_TTL": ("cache", "default_ttl"),
    "AI_GATEWAY_CACHE_COMPRESSION": ("cache", "compression_enabled"),
    "AI_GATEWAY_CACHE_SEMANTIC": ("cache", "semantic_similarity"),
    "AI_GATEWAY_CACHE_ADAPTIVE_TTL": ("cache", "adaptive_ttl"),
    "AI_GATEWAY_CACHE_BACKEND": ("cache", "storage_backend"),
    "AI_GATEWAY_CACHE_FILE": ("cache", "file_path"),
    "AI_GATEWAY_REDIS_URL": ("cache", "redis_url"),
    "AI_GATEWAY_SIMILARITY_THRESHOLD": ("similarity", "threshold"),
    "AI_GATEWAY_SIMILARITY_ALGORITHM": ("similarity", "algorithm"),
    "AI_GATEWAY_HEALTH_INTERVAL": ("gateway", "health_check_interval"),
    "AI_GATEWAY_QUEUE_TICK": ("gateway", "queue_tick_interval"),
    "AI_GATEWAY_MAX_IN_FLIGHT": ("gateway", "max_in_flight"),
}


class GatewayConfig(BaseModel):
    """Top-level configuration consumed by ``create_gateway``."""
    cache: CacheConfig = Field(default_factory=CacheConfig)
    similarity: SimilarityConfig = Field(default_factory=SimilarityConfig)
    providers: Optional[List[ProviderConfig]] = None
    health_check_interval: float = Field(default=30.0, gt=0)
    queue_tick_interval: float = Field(default=0.1, gt=0)
    max_in_flight: int = Field(default=8, ge=1)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        """
        Build a config from a dict.

        Dotted camelCase keys (``cache.maxSize``) are accepted next to the
        nested snake_case layout; ``cache.defaultTTL`` is read as milliseconds.
        """
        sections: Dict[str, Dict[str, Any]] = {"cache": {}, "similarity": {}}
        top: Dict[str, Any] = {}

        for key, value in data.items():
            if key in _OPTION_ALIASES:
                section, field_name, scale = _OPTION_ALIASES[key]
                sections[section][field_name] = value * scale if scale else value
            elif key in sections and isinstance(value, dict):
                sections[key].update(value)
            else:
                top[key] = value

        return cls(
            cache=CacheConfig(**sections["cache"]),
            similarity=SimilarityConfig(**sections["similarity"]),
            **top,
        )

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "GatewayConfig":
        """Build a config from ``AI_GATEWAY_*`` environment variables."""
        if dotenv:
            load_dotenv()

        sections: Dict[str, Dict[str, Any]] = {"cache": {}, "similarity": {}, "gateway": {}}
        for env_var, (section, field_name) in _ENV_OPTIONS.items():
            value = os.getenv(env_var)
            if value is not None and value != "":
                sections[section][field_name] = value

        return cls(
            cache=CacheConfig(**sections["cache"]),
            similarity=SimilarityConfig(**sections["similarity"]),
            **sections["gateway"],
        )
