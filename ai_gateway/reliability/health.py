"""
Provider health monitoring.

Each registered provider is probed with a minimal synthetic request on a
fixed interval. Consecutive failures move a provider from HEALTHY to
DEGRADED (1-3 failures) and then UNHEALTHY (more than 3); one successful
probe resets it to HEALTHY. The router reads the resulting snapshot, which
is at most one probe interval stale.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from ..core.background import PeriodicTask
from ..models.health import HealthStatus, ProviderHealth
from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest, RequestPriority, RequestType
from ..providers.base import ProviderClient

if TYPE_CHECKING:
    from ..core.routing.registry import ProviderRegistry

logger = logging.getLogger(__name__)

DEGRADED_AFTER_FAILURES = 1
UNHEALTHY_AFTER_FAILURES = 3  # strictly more than this


def status_for_failures(consecutive_failures: int) -> HealthStatus:
    if consecutive_failures > UNHEALTHY_AFTER_FAILURES:
        return HealthStatus.UNHEALTHY
    if consecutive_failures >= DEGRADED_AFTER_FAILURES:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthMonitor:
    """Maintains the health snapshot for every registered provider."""

    def __init__(
        self,
        registry: ProviderRegistry,
        client: ProviderClient,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.client = client
        self._clock = clock
        self._health: Dict[str, ProviderHealth] = {}
        self._lock = asyncio.Lock()

    def _probe_request(self) -> GatewayRequest:
        return GatewayRequest(
            id=f"health-{int(self._clock() * 1000)}",
            type=RequestType.ANALYSIS,
            prompt="Hello",
            priority=RequestPriority.LOW,
            session_id="health-check",
            timestamp=self._clock(),
        )

    async def check_provider(self, provider: ProviderConfig) -> ProviderHealth:
        """Probe one provider and fold the outcome into its health record."""
        started = time.perf_counter()
        error: Optional[BaseException] = None
        try:
            await asyncio.wait_for(
                self.client.invoke(provider, self._probe_request()),
                timeout=provider.timeout,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
        latency_ms = (time.perf_counter() - started) * 1000

        return await self.record_probe(provider, error is None, latency_ms, error)

    async def record_probe(
        self,
        provider: ProviderConfig,
        success: bool,
        latency_ms: float,
        error: Optional[BaseException] = None,
    ) -> ProviderHealth:
        """Apply one probe outcome to the state machine."""
        async with self._lock:
            health = self._health.get(provider.id)
            if health is None:
                health = ProviderHealth(provider_id=provider.id, model=provider.model)
                self._health[provider.id] = health

            previous = health.status
            health.total_probes += 1
            health.latency_ms = latency_ms
            health.last_checked = self._clock()

            if success:
                health.consecutive_failures = 0
                health.last_error = None
            else:
                health.consecutive_failures += 1
                health.failed_probes += 1
                health.last_error = f"{type(error).__name__}: {error}" if error else "probe failed"

            health.status = status_for_failures(health.consecutive_failures)

        if health.status != previous:
            self._log_transition(health, previous)
        return health

    def _log_transition(self, health: ProviderHealth, previous: HealthStatus) -> None:
        extra = {
            "provider": health.provider_id,
            "previous_status": previous.value,
            "status": health.status.value,
            "consecutive_failures": health.consecutive_failures,
        }
        message = f"Provider {health.provider_id} is {health.status.value}"
        if health.status == HealthStatus.UNHEALTHY:
            logger.error(message, extra=extra)
        elif health.status == HealthStatus.DEGRADED:
            logger.warning(message, extra=extra)
        else:
            logger.info(message, extra=extra)

    async def check_all(self) -> List[ProviderHealth]:
        """Probe every registered provider, one after another."""
        results = []
        for provider in self.registry.list():
            results.append(await self.check_provider(provider))
        return results

    def get(self, provider_id: str) -> Optional[ProviderHealth]:
        return self._health.get(provider_id)

    def status(self, provider_id: str) -> HealthStatus:
        health = self._health.get(provider_id)
        return health.status if health else HealthStatus.UNKNOWN

    def is_available(self, provider_id: str) -> bool:
        """Providers never probed count as available."""
        return self.status(provider_id) != HealthStatus.UNHEALTHY

    def snapshot(self) -> List[ProviderHealth]:
        return list(self._health.values())


class HealthProbeTask(PeriodicTask):
    """Background task probing all providers on a fixed interval."""

    def __init__(self, monitor: HealthMonitor, interval: float = 30.0):
        super().__init__("health-probe", interval)
        self.monitor = monitor

    async def tick(self) -> None:
        await self.monitor.check_all()
