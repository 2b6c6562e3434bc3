"""
Semantic response cache.

Entries are keyed by a sha256 of the prompt and its canonical context. A
miss on the exact key may still be answered by a fuzzy match against the
normalized prompts of live entries. Frequently read entries get a longer
time to live, and a full store evicts its lowest-retention entries before
accepting a new one.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import math
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config.settings import CacheConfig, SimilarityConfig
from ..core.background import PeriodicTask
from ..errors import CachePersistenceError
from ..models.cache import CacheEntry, CacheEntryMetadata, CacheSnapshot, CacheStats
from ..models.requests import TokenUsage
from ..observability.logging import GatewayLogger
from .persistence import MemoryPersistence, PersistenceBackend
from .similarity import normalize_prompt, similarity

logger = logging.getLogger(__name__)
log = GatewayLogger("cache")


def _canonical_context(context: Dict[str, Any]) -> str:
    return json.dumps(context, sort_keys=True, separators=(",", ":"), default=str)


def make_cache_key(prompt: str, context: Optional[Dict[str, Any]] = None) -> str:
    """Exact lookup key for a prompt and its context."""
    data = f"{prompt}|{_canonical_context(context)}" if context else prompt
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def make_prompt_hash(prompt: str) -> str:
    """Hash of the normalized prompt, shared by prompts differing only in case and punctuation."""
    return hashlib.md5(normalize_prompt(prompt).encode("utf-8")).hexdigest()


class ResponseCache:
    """
    In-memory response store with fuzzy lookup, adaptive TTL and
    best-effort persistence.

    All access to the entry map goes through one ``asyncio.Lock``.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        similarity_config: Optional[SimilarityConfig] = None,
        persistence: Optional[PersistenceBackend] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or CacheConfig()
        self.similarity_config = similarity_config or SimilarityConfig()
        self._persistence = persistence or MemoryPersistence()
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._stats = CacheStats()
        self._lock = asyncio.Lock()
        self._persist_task: Optional[asyncio.Task] = None
        self._persist_pending = False

    # Lookup

    async def get(self, prompt: str, context: Optional[Dict[str, Any]] = None) -> Optional[CacheEntry]:
        """
        Look up a cached response.

        Returns:
            A copy of the matching entry after access bookkeeping, or None
        """
        async with self._lock:
            now = self._clock()
            self._stats.total_requests += 1

            key = make_cache_key(prompt, context)
            entry = self._store.get(key)

            if entry is not None:
                if entry.is_expired(now):
                    del self._store[key]
                    self._stats.evictions += 1
                    self._stats.misses += 1
                    log.debug("Expired entry evicted on read", entry_id=entry.id)
                    return None
                self._touch(entry, now)
                self._stats.hits += 1
                return entry.model_copy(deep=True)

            if self.config.semantic_similarity:
                entry, score = self._find_similar(prompt, now)
                if entry is not None:
                    self._touch(entry, now)
                    self._stats.hits += 1
                    self._stats.semantic_matches += 1
                    log.debug("Semantic cache hit", entry_id=entry.id, similarity=f"{score:.3f}")
                    # The score belongs to this lookup only, never to the stored entry.
                    match = entry.model_copy(deep=True)
                    match.metadata.similarity = score
                    return match

            self._stats.misses += 1
            return None

    def _find_similar(self, prompt: str, now: float) -> Tuple[Optional[CacheEntry], float]:
        normalized = normalize_prompt(prompt)
        prompt_hash = make_prompt_hash(prompt)
        best_match: Optional[CacheEntry] = None
        best_similarity = 0.0

        for entry in self._store.values():
            if entry.is_expired(now):
                continue

            if entry.metadata.prompt_hash == prompt_hash:
                return entry, 1.0

            score = similarity(
                normalized,
                entry.metadata.normalized_prompt,
                self.similarity_config.algorithm,
            )
            if score > self.similarity_config.threshold and score > best_similarity:
                best_match = entry
                best_similarity = score

        return best_match, best_similarity

    def _touch(self, entry: CacheEntry, now: float) -> None:
        entry.last_accessed = max(now, entry.created_at)
        entry.access_count += 1

        if self.config.adaptive_ttl and entry.access_count > self.config.adaptive_ttl_threshold:
            extended = min(entry.ttl * self.config.adaptive_ttl_multiplier, self.config.max_ttl)
            if extended > entry.ttl:
                entry.ttl = extended

    # Insertion

    async def set(
        self,
        prompt: str,
        content: str,
        usage: Optional[TokenUsage] = None,
        cost: float = 0.0,
        model: str = "",
        context: Optional[Dict[str, Any]] = None,
        request_type: str = "general",
    ) -> CacheEntry:
        """Store a response, evicting first when the store is full."""
        async with self._lock:
            now = self._clock()
            key = make_cache_key(prompt, context)
            stored, encoding = self._encode(content)

            entry = CacheEntry(
                id=f"cache-{int(now * 1000)}-{uuid.uuid4().hex[:9]}",
                key=key,
                content=stored,
                encoding=encoding,
                usage=usage or TokenUsage(),
                cost=cost,
                model=model,
                created_at=now,
                last_accessed=now,
                access_count=0,
                ttl=self.config.default_ttl,
                metadata=CacheEntryMetadata(
                    request_type=str(getattr(request_type, "value", request_type)),
                    prompt_hash=make_prompt_hash(prompt),
                    normalized_prompt=normalize_prompt(prompt),
                    context_hash=(
                        hashlib.md5(_canonical_context(context).encode("utf-8")).hexdigest()
                        if context else None
                    ),
                ),
            )

            if key in self._store:
                del self._store[key]
            elif len(self._store) >= self.config.max_size:
                self._evict(now)

            self._store[key] = entry

        self._schedule_persist()
        return entry

    def _encode(self, content: str) -> tuple[str, str]:
        if not self.config.compression_enabled or len(content) <= self.config.compression_threshold:
            return content, "identity"

        encoded = CacheEntry.encode_content(content)
        if len(encoded) >= len(content):
            return content, "identity"
        self._stats.compression_savings += len(content) - len(encoded)
        return encoded, "zlib"

    def _retention_score(self, entry: CacheEntry, now: float) -> float:
        idle_seconds = max(0.0, now - entry.last_accessed)
        return (
            entry.access_count * self.config.eviction_access_weight
            + idle_seconds * self.config.eviction_idle_weight
        )

    def _evict(self, now: float) -> int:
        to_evict = max(
            1,
            math.ceil(self.config.max_size * self.config.eviction_ratio),
            len(self._store) - self.config.max_size + 1,
        )
        # sorted() is stable: equal scores evict the oldest insertion first
        ranked = sorted(self._store.items(), key=lambda item: self._retention_score(item[1], now))
        evicted = [key for key, _ in ranked[:to_evict]]
        for key in evicted:
            del self._store[key]
        self._stats.evictions += len(evicted)

        logger.info(
            f"Evicted {len(evicted)} cache entries at capacity",
            extra={"evicted": len(evicted), "max_size": self.config.max_size},
        )
        return len(evicted)

    # Maintenance

    async def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            self._stats.evictions += len(expired)

        if expired:
            log.info("Swept expired entries", removed=len(expired))
            self._schedule_persist()
        return len(expired)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            removed = self._store.pop(key, None) is not None
        if removed:
            self._schedule_persist()
        return removed

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()
            self._stats = CacheStats()
        self._schedule_persist()

    def update_config(self, **changes: Any) -> None:
        """Replace config fields; takes effect on the next operation."""
        self.config = self.config.model_copy(update=changes)

    # Persistence

    async def restore(self) -> int:
        """
        Load the persisted snapshot, dropping entries that already expired.

        Returns:
            Number of entries loaded
        """
        try:
            snapshot = await self._persistence.read()
        except CachePersistenceError as e:
            log.warning("Failed to load persisted cache", backend=e.backend, error=e)
            return 0
        if snapshot is None:
            return 0

        async with self._lock:
            now = self._clock()
            live = [entry for entry in snapshot.entries if not entry.is_expired(now)]
            live = live[-self.config.max_size:]
            self._store = {entry.key: entry for entry in live}
            self._stats = snapshot.stats.model_copy()

        log.info("Restored persisted cache", entries=len(live), backend=self._persistence.backend_id)
        return len(live)

    def _schedule_persist(self) -> None:
        if self._persistence.backend_id == MemoryPersistence.backend_id:
            return
        self._persist_pending = True
        if self._persist_task is None or self._persist_task.done():
            self._persist_task = asyncio.create_task(self._persist_loop())

    async def _persist_loop(self) -> None:
        # Writes coalesce: a burst of sets produces one write of the latest state
        while self._persist_pending:
            self._persist_pending = False
            async with self._lock:
                snapshot = CacheSnapshot(
                    entries=list(self._store.values()),
                    stats=self._stats.model_copy(),
                    timestamp=self._clock(),
                )
            try:
                await self._persistence.write(snapshot)
            except CachePersistenceError as e:
                log.warning("Failed to persist cache", backend=e.backend, error=e)
            except Exception as e:
                logger.exception(f"Unexpected error persisting cache: {e}")

    async def flush(self) -> None:
        """Wait for any pending persistence write."""
        task = self._persist_task
        if task is not None and not task.done():
            await task

    async def aclose(self) -> None:
        """Flush pending writes and release the persistence backend."""
        await self.flush()
        await self._persistence.aclose()

    # Read surface

    def get_stats(self) -> Dict[str, Any]:
        stats = self._stats
        hit_rate = (stats.hits / stats.total_requests * 100) if stats.total_requests > 0 else 0.0
        return {
            **stats.model_dump(),
            "hit_rate": round(hit_rate, 2),
            "size": len(self._store),
            "max_size": self.config.max_size,
        }

    def entries(self) -> List[CacheEntry]:
        return [entry.model_copy(deep=True) for entry in self._store.values()]

    def __len__(self) -> int:
        return len(self._store)


class CacheSweeper(PeriodicTask):
    """Background task removing expired entries on a fixed cadence."""

    def __init__(self, cache: ResponseCache, interval: Optional[float] = None):
        super().__init__("cache-sweeper", interval or cache.config.cleanup_interval)
        self.cache = cache

    async def tick(self) -> None:
        await self.cache.sweep()
