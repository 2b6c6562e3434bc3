"""HTTP surface (requires the 'http' extra)."""

from .api import create_router

__all__ = ["create_router"]
