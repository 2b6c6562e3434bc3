"""
Durable backing for the response cache.

Backends store a whole ``CacheSnapshot`` and return it on start-up. Every
backend failure is raised as ``CachePersistenceError``; the cache decides
what to do with it.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from ..config.settings import CacheConfig, StorageBackend
from ..errors import CachePersistenceError
from ..models.cache import CacheSnapshot


class PersistenceBackend(Protocol):
    """Protocol implemented by cache persistence backends."""
    backend_id: str

    async def write(self, snapshot: CacheSnapshot) -> None: ...

    async def read(self) -> Optional[CacheSnapshot]: ...

    async def aclose(self) -> None: ...


class MemoryPersistence:
    """Memory-only operation: nothing is written, nothing is restored."""

    backend_id = "memory"

    async def write(self, snapshot: CacheSnapshot) -> None:
        return None

    async def read(self) -> Optional[CacheSnapshot]:
        return None

    async def aclose(self) -> None:
        return None


class FilePersistence:
    """JSON file backend. Writes go to a temp file and are renamed into place."""

    backend_id = "file"

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    async def write(self, snapshot: CacheSnapshot) -> None:
        payload = snapshot.model_dump_json()
        try:
            await asyncio.to_thread(self._write_sync, payload)
        except OSError as e:
            raise CachePersistenceError(f"Failed to write {self.path}: {e}", self.backend_id) from e

    async def read(self) -> Optional[CacheSnapshot]:
        try:
            payload = await asyncio.to_thread(self._read_sync)
        except OSError as e:
            raise CachePersistenceError(f"Failed to read {self.path}: {e}", self.backend_id) from e
        if payload is None:
            return None
        try:
            return CacheSnapshot.model_validate_json(payload)
        except ValidationError as e:
            raise CachePersistenceError(f"Corrupt cache file {self.path}: {e}", self.backend_id) from e

    def _write_sync(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _read_sync(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    async def aclose(self) -> None:
        return None


class RedisPersistence:
    """Redis backend storing the snapshot as one JSON blob under ``key``."""

    backend_id = "redis"

    def __init__(self, redis_client, key: str = "ai-cache"):
        self._redis = redis_client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str = "ai-cache") -> "RedisPersistence":
        from redis import asyncio as aioredis

        return cls(aioredis.from_url(url), key=key)

    async def write(self, snapshot: CacheSnapshot) -> None:
        try:
            await self._redis.set(self.key, snapshot.model_dump_json())
        except Exception as e:
            raise CachePersistenceError(f"Failed to write key {self.key}: {e}", self.backend_id) from e

    async def read(self) -> Optional[CacheSnapshot]:
        try:
            blob = await self._redis.get(self.key)
        except Exception as e:
            raise CachePersistenceError(f"Failed to read key {self.key}: {e}", self.backend_id) from e
        if blob is None:
            return None
        try:
            return CacheSnapshot.model_validate_json(blob)
        except ValidationError as e:
            raise CachePersistenceError(f"Corrupt snapshot under {self.key}: {e}", self.backend_id) from e

    async def aclose(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()


def create_persistence_backend(config: CacheConfig) -> PersistenceBackend:
    """Resolve the backend named by ``config.storage_backend``."""
    backend = StorageBackend(config.storage_backend)
    if backend == StorageBackend.FILE:
        return FilePersistence(config.file_path)
    if backend == StorageBackend.REDIS:
        return RedisPersistence.from_url(config.redis_url, key=config.redis_key)
    return MemoryPersistence()
