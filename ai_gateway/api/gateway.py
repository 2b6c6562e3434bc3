"""Gateway facade: the single entry point for AI generation requests."""

from __future__ import annotations

import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..cache.persistence import PersistenceBackend, create_persistence_backend
from ..cache.response_cache import CacheSweeper, ResponseCache
from ..config.providers import get_default_providers
from ..config.settings import GatewayConfig
from ..core.dispatch import QueueDispatcher, RequestQueue
from ..core.routing import ProviderRegistry, RequestRouter
from ..errors import CostLimitExceeded, NoHealthyProvider
from ..models.cache import CacheEntry
from ..models.requests import GatewayRequest, GatewayResponse, RequestType
from ..observability.events import GatewayEvent, RequestCompleted, RequestFailed
from ..observability.logging import GatewayLogger
from ..observability.sinks import EventSink, LoggingEventSink
from ..providers.base import ProviderClient
from ..reliability.cost_ledger import CostLedger, estimate_cost
from ..reliability.health import HealthMonitor, HealthProbeTask

logger = GatewayLogger("gateway")


@dataclass
class GatewayStats:
    """Request counters kept by the facade."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    total_latency_ms: float = 0.0

    @property
    def average_latency_ms(self) -> float:
        if self.successful_requests == 0:
            return 0.0
        return self.total_latency_ms / self.successful_requests


class Gateway:
    """
    Routes requests to the best available provider.

    For each request the gateway consults the response cache, selects a
    provider, enforces its spend caps, invokes it under a timeout and
    records the outcome. Provider errors reach the caller unmodified.

    Background work (health probing, cache sweeping, queue dispatch) runs
    in three independent tasks controlled by ``start()``/``stop()`` or the
    individual ``start_*``/``stop_*`` methods.
    """

    def __init__(
        self,
        config: GatewayConfig,
        registry: ProviderRegistry,
        client: ProviderClient,
        cache: ResponseCache,
        health_monitor: HealthMonitor,
        cost_ledger: CostLedger,
        event_sink: EventSink,
        owns_client: bool = False,
        owns_persistence: bool = False,
    ):
        self.config = config
        self.registry = registry
        self.client = client
        self.cache = cache
        self.health_monitor = health_monitor
        self.cost_ledger = cost_ledger
        self.event_sink = event_sink
        self.router = RequestRouter(registry, health_monitor, self.active_count)
        self.queue = RequestQueue()

        self._owns_client = owns_client
        self._owns_persistence = owns_persistence
        self._stats = GatewayStats()
        self._active: Dict[int, GatewayRequest] = {}
        self._tokens = itertools.count()
        self._lock = asyncio.Lock()

        self._health_task = HealthProbeTask(health_monitor, config.health_check_interval)
        self._sweeper = CacheSweeper(cache, config.cache.cleanup_interval)
        self._dispatcher = QueueDispatcher(
            self.queue,
            self.send_request,
            interval=config.queue_tick_interval,
            max_in_flight=config.max_in_flight,
        )

    # Request path

    async def send_request(self, request: GatewayRequest) -> GatewayResponse:
        """
        Serve one request.

        Raises:
            NoHealthyProvider: No provider survived the health filter
            CostLimitExceeded: The selected provider's spend cap would be exceeded
            Exception: Whatever the provider client raised, unchanged
        """
        started = time.perf_counter()
        token = await self._register(request)
        try:
            with logger.track_request("send_request", request_id=request.id,
                                      request_type=request.type.value) as tracking:
                try:
                    return await self._serve(request, started, tracking)
                except Exception as e:
                    async with self._lock:
                        self._stats.failed_requests += 1
                    await self._emit(RequestFailed(
                        request=request,
                        error=e,
                        latency_ms=(time.perf_counter() - started) * 1000,
                    ))
                    raise
        finally:
            await self._deregister(token)

    async def _serve(self, request: GatewayRequest, started: float,
                     tracking: Dict[str, Any]) -> GatewayResponse:
        entry = await self.cache.get(request.prompt, request.context)
        if entry is not None:
            async with self._lock:
                self._stats.cache_hits += 1
            tracking["cached"] = True
            response = self._response_from_cache(request, entry, started)
            await self._emit(RequestCompleted(
                request=request, response=response, latency_ms=response.latency_ms
            ))
            return response

        async with self._lock:
            self._stats.cache_misses += 1

        provider = self.router.select_provider(request)
        if provider is None:
            raise NoHealthyProvider(request_id=request.id)
        tracking["provider"] = provider.id

        estimated_cost = estimate_cost(provider, request)
        if not self.cost_ledger.check_cost_limit(provider, estimated_cost):
            spend = self.cost_ledger.get_spend(provider.id)
            raise CostLimitExceeded(
                provider_id=provider.id,
                estimated_cost=estimated_cost,
                daily_spend=spend.daily,
                monthly_spend=spend.monthly,
                max_daily_cost=provider.cost_limit.max_daily_cost,
                max_monthly_cost=provider.cost_limit.max_monthly_cost,
            )

        timeout = request.timeout or provider.timeout
        response = await asyncio.wait_for(self.client.invoke(provider, request), timeout=timeout)
        if response.provider_id is None:
            response.provider_id = provider.id

        await self.cost_ledger.record_spend(provider.id, response.cost)
        await self.cache.set(
            request.prompt,
            response.content,
            usage=response.usage,
            cost=response.cost,
            model=response.model,
            context=request.context,
            request_type=request.type,
        )

        async with self._lock:
            self._stats.successful_requests += 1
            self._stats.total_latency_ms += response.latency_ms

        await self._emit(RequestCompleted(
            request=request, response=response, latency_ms=response.latency_ms
        ))
        return response

    @staticmethod
    def _response_from_cache(request: GatewayRequest, entry: CacheEntry,
                             started: float) -> GatewayResponse:
        return GatewayResponse(
            id=f"resp-{request.id}",
            request_id=request.id,
            content=entry.text(),
            usage=entry.usage,
            cost=0.0,
            latency_ms=(time.perf_counter() - started) * 1000,
            model=entry.model,
            metadata={
                "cache_entry_id": entry.id,
                "similarity": entry.metadata.similarity,
                "original_cost": entry.cost,
            },
            cached=True,
        )

    async def queue_request(self, request: GatewayRequest) -> asyncio.Future:
        """
        Defer a request to the dispatcher.

        Returns:
            Future resolving with the response, or with the exception
            ``send_request`` raised
        """
        return await self.queue.put(request)

    # Active requests

    async def _register(self, request: GatewayRequest) -> int:
        # Keyed per call; callers may reuse request ids.
        async with self._lock:
            token = next(self._tokens)
            self._active[token] = request
            self._stats.total_requests += 1
        return token

    async def _deregister(self, token: int) -> None:
        async with self._lock:
            self._active.pop(token, None)

    def active_count(self, request_type: Optional[RequestType] = None) -> int:
        """In-flight requests, optionally only those of one type."""
        if request_type is None:
            return len(self._active)
        return sum(1 for r in self._active.values() if r.type == request_type)

    # Events

    async def _emit(self, event: GatewayEvent) -> None:
        try:
            await self.event_sink.emit(event)
        except Exception as e:
            logger.error("Event sink failed", request_id=event.request.id, error=e,
                         event_type=event.event_type.value)

    # Query surface

    def get_stats(self) -> Dict[str, Any]:
        stats = self._stats
        return {
            "total_requests": stats.total_requests,
            "successful_requests": stats.successful_requests,
            "failed_requests": stats.failed_requests,
            "average_latency_ms": stats.average_latency_ms,
            "total_cost": self.cost_ledger.total_cost,
            "cache_hits": stats.cache_hits,
            "cache_misses": stats.cache_misses,
            "active_requests": len(self._active),
            "queued_requests": len(self.queue),
            "cache": self.cache.get_stats(),
        }

    def get_service_status(self) -> Dict[str, Any]:
        return {
            "providers": [p.model_dump(mode="json") for p in self.registry.list()],
            "health": [h.to_dict() for h in self.health_monitor.snapshot()],
            "active_requests": [r.model_dump(mode="json") for r in self._active.values()],
            "cost": self.cost_ledger.snapshot(),
        }

    # Lifecycle

    def start_health_monitoring(self) -> None:
        self._health_task.start()

    async def stop_health_monitoring(self) -> None:
        await self._health_task.stop()

    def start_cache_sweeper(self) -> None:
        self._sweeper.start()

    async def stop_cache_sweeper(self) -> None:
        await self._sweeper.stop()

    def start_dispatcher(self) -> None:
        self._dispatcher.start()

    async def stop_dispatcher(self) -> None:
        await self._dispatcher.stop()

    @property
    def running(self) -> Dict[str, bool]:
        return {
            "health_monitoring": self._health_task.running,
            "cache_sweeper": self._sweeper.running,
            "dispatcher": self._dispatcher.running,
        }

    async def start(self) -> None:
        """Restore the persisted cache and start all background tasks."""
        await self.cache.restore()
        self.start_health_monitoring()
        self.start_cache_sweeper()
        self.start_dispatcher()
        logger.info("Gateway started", providers=len(self.registry))

    async def stop(self) -> None:
        """
        Stop background tasks, finish dispatched work and flush pending writes.

        Requests still waiting in the queue are failed with ``GatewayStopped``.
        """
        await self.stop_dispatcher()
        await self._dispatcher.drain()
        abandoned = await self._dispatcher.abandon_pending()
        if abandoned:
            logger.warning("Abandoned queued requests on stop", abandoned=abandoned)
        await self.stop_cache_sweeper()
        await self.stop_health_monitoring()
        await self.cache.flush()
        await self.event_sink.flush()
        logger.info("Gateway stopped")

    async def aclose(self) -> None:
        await self.stop()
        if self._owns_client:
            await self.client.aclose()
        if self._owns_persistence:
            await self.cache.aclose()

    async def __aenter__(self) -> "Gateway":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def create_gateway(
    config: Optional[GatewayConfig] = None,
    client: Optional[ProviderClient] = None,
    event_sink: Optional[EventSink] = None,
    persistence: Optional[PersistenceBackend] = None,
    clock: Callable[[], float] = time.time,
    providers: Optional[List] = None,
) -> Gateway:
    """
    Wire a gateway from configuration.

    Args:
        config: Gateway configuration (defaults to ``GatewayConfig()``)
        client: Provider client; the bundled vendor clients when omitted
        event_sink: Destination for request events; logs when omitted
        persistence: Cache persistence backend; chosen from config when omitted
        clock: Wall clock used by the cache, ledger and health monitor
        providers: Provider configs overriding ``config.providers`` and the default catalog
    """
    config = config or GatewayConfig()

    owns_client = client is None
    owns_persistence = persistence is None
    if client is None:
        from ..providers.composite import CompositeProviderClient
        client = CompositeProviderClient.default()

    if providers is None:
        providers = config.providers if config.providers is not None else get_default_providers()
    registry = ProviderRegistry(providers)

    cache = ResponseCache(
        config.cache,
        config.similarity,
        persistence=persistence or create_persistence_backend(config.cache),
        clock=clock,
    )

    return Gateway(
        config=config,
        registry=registry,
        client=client,
        cache=cache,
        health_monitor=HealthMonitor(registry, client, clock=clock),
        cost_ledger=CostLedger(clock=clock),
        event_sink=event_sink or LoggingEventSink(),
        owns_client=owns_client,
        owns_persistence=owns_persistence,
    )
