"""
Provider selection.

Every routable provider gets a deterministic score built from its health,
probe latency, estimated cost, capability fit and current congestion; the
highest score wins and registration order breaks ties.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ...models.health import HealthStatus
from ...models.providers import ProviderConfig
from ...models.requests import GatewayRequest, RequestPriority, RequestType
from ...observability.logging import GatewayLogger
from ...reliability.cost_ledger import estimate_cost
from .registry import ProviderRegistry

if TYPE_CHECKING:
    from ...reliability.health import HealthMonitor

logger = GatewayLogger("router")

BASE_SCORE = 100.0

HEALTH_ADJUSTMENTS = {
    HealthStatus.HEALTHY: 20.0,
    HealthStatus.DEGRADED: -10.0,
    HealthStatus.UNHEALTHY: -50.0,
}

FAST_LATENCY_MS = 1000
FAST_LATENCY_BONUS = 10.0
SLOW_LATENCY_MS = 5000
SLOW_LATENCY_PENALTY = -15.0

CRITICAL_PRIORITY_BONUS = 10.0
MAX_COST_PENALTY = 20.0
COST_PENALTY_SCALE = 1000

CAPABILITY_BASELINE = 50.0

CONGESTION_PER_REQUEST = 2.0
MAX_CONGESTION_PENALTY = 15.0

ActiveCounter = Callable[[RequestType], int]


@dataclass
class ProviderScore:
    """Score breakdown for one candidate provider."""
    provider: ProviderConfig
    health: float = 0.0
    latency: float = 0.0
    cost: float = 0.0
    capability: float = 0.0
    congestion: float = 0.0
    estimated_cost: float = 0.0

    @property
    def total(self) -> float:
        raw = BASE_SCORE + self.health + self.latency + self.cost + self.capability + self.congestion
        return max(0.0, raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_id": self.provider.id,
            "score": self.total,
            "health": self.health,
            "latency": self.latency,
            "cost": self.cost,
            "capability": self.capability,
            "congestion": self.congestion,
            "estimated_cost": self.estimated_cost,
        }


def _no_active_requests(_request_type: RequestType) -> int:
    return 0


class RequestRouter:
    """Selects the provider for a request from the registry."""

    def __init__(
        self,
        registry: ProviderRegistry,
        health_monitor: "HealthMonitor",
        active_requests: Optional[ActiveCounter] = None,
    ):
        self.registry = registry
        self.health_monitor = health_monitor
        self._active_requests = active_requests or _no_active_requests

    def score_provider(self, provider: ProviderConfig, request: GatewayRequest,
                       active_same_type: int) -> ProviderScore:
        score = ProviderScore(provider=provider)

        health = self.health_monitor.get(provider.id)
        if health is not None:
            score.health = HEALTH_ADJUSTMENTS.get(health.status, 0.0)
            if health.latency_ms < FAST_LATENCY_MS:
                score.latency = FAST_LATENCY_BONUS
            elif health.latency_ms > SLOW_LATENCY_MS:
                score.latency = SLOW_LATENCY_PENALTY

        score.estimated_cost = estimate_cost(provider, request)
        if request.priority == RequestPriority.CRITICAL:
            score.cost = CRITICAL_PRIORITY_BONUS
        else:
            score.cost = -min(MAX_COST_PENALTY, score.estimated_cost * COST_PENALTY_SCALE)

        capability = provider.capability_for(request.type)
        if capability is not None:
            score.capability = capability - CAPABILITY_BASELINE

        score.congestion = -min(MAX_CONGESTION_PENALTY, active_same_type * CONGESTION_PER_REQUEST)
        return score

    def candidates(self) -> List[ProviderConfig]:
        """Registered providers not currently marked unhealthy."""
        return [p for p in self.registry.list() if self.health_monitor.is_available(p.id)]

    def score_providers(self, request: GatewayRequest) -> List[ProviderScore]:
        """Scores for every candidate, best first; ties keep registration order."""
        active_same_type = self._active_requests(request.type)
        scores = [
            self.score_provider(provider, request, active_same_type)
            for provider in self.candidates()
        ]
        # sorted() is stable, so equal totals stay in registration order
        return sorted(scores, key=lambda s: s.total, reverse=True)

    def select_provider(self, request: GatewayRequest) -> Optional[ProviderConfig]:
        """Best provider for the request, or None when no candidate remains."""
        scores = self.score_providers(request)
        if not scores:
            logger.warning("No candidate provider", request_id=request.id,
                           request_type=request.type.value)
            return None

        best = scores[0]
        logger.debug(
            "Selected provider",
            provider=best.provider.id,
            request_id=request.id,
            score=f"{best.total:.1f}",
            candidates=len(scores),
        )
        return best.provider
