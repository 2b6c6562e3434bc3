"""Caching layer: similarity scoring, the response cache and its persistence backends."""

from .similarity import (
    VOCABULARY,
    cosine_similarity,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    normalize_prompt,
    similarity,
)
from .persistence import (
    FilePersistence,
    MemoryPersistence,
    PersistenceBackend,
    RedisPersistence,
    create_persistence_backend,
)
from .response_cache import CacheSweeper, ResponseCache, make_cache_key, make_prompt_hash

__all__ = [
    "VOCABULARY",
    "cosine_similarity",
    "jaccard_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
    "normalize_prompt",
    "similarity",
    "FilePersistence",
    "MemoryPersistence",
    "PersistenceBackend",
    "RedisPersistence",
    "create_persistence_backend",
    "CacheSweeper",
    "ResponseCache",
    "make_cache_key",
    "make_prompt_hash",
]
