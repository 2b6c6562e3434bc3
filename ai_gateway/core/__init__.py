"""Core gateway layers.

This package contains the provider-agnostic logic organized into layers:
- routing: Provider registry, scoring and selection
- dispatch: FIFO request queue and bounded dispatcher
- background: Fixed-interval background tasks
"""

__all__ = []
