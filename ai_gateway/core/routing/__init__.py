"""Routing layer for provider selection.

This layer handles:
- The registration-ordered provider catalog
- Deterministic provider scoring and selection
"""

from .registry import ProviderRegistry
from .router import ProviderScore, RequestRouter

__all__ = [
    "ProviderRegistry",
    "ProviderScore",
    "RequestRouter",
]
