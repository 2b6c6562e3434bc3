"""
Per-provider spend tracking with calendar buckets.

Spend is recorded under the current UTC day (``YYYY-MM-DD``) and month
(``YYYY-MM``) of the injected clock, so daily and monthly totals roll over
on their own. Buckets older than the current period are pruned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Tuple

from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


def estimate_cost(provider: ProviderConfig, request: GatewayRequest) -> float:
    """Rough pre-call estimate: prompt length / 4 tokens at the input rate."""
    token_estimate = len(request.prompt) / CHARS_PER_TOKEN
    return token_estimate / 1000 * provider.input_cost_per_1k_tokens


@dataclass
class SpendSummary:
    daily: float = 0.0
    monthly: float = 0.0


class CostLedger:
    """Running spend per provider for the current day and month."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._daily: Dict[Tuple[str, str], float] = {}
        self._monthly: Dict[Tuple[str, str], float] = {}
        self._total_cost = 0.0
        self._lock = asyncio.Lock()

    def _periods(self) -> Tuple[str, str]:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        return now.strftime("%Y-%m-%d"), now.strftime("%Y-%m")

    def _prune(self, day: str, month: str) -> None:
        self._daily = {key: value for key, value in self._daily.items() if key[1] == day}
        self._monthly = {key: value for key, value in self._monthly.items() if key[1] == month}

    def get_spend(self, provider_id: str) -> SpendSummary:
        day, month = self._periods()
        return SpendSummary(
            daily=self._daily.get((provider_id, day), 0.0),
            monthly=self._monthly.get((provider_id, month), 0.0),
        )

    def check_cost_limit(self, provider: ProviderConfig, estimated_cost: float) -> bool:
        """True if ``estimated_cost`` fits under both the daily and the monthly cap."""
        spend = self.get_spend(provider.id)
        return (
            spend.daily + estimated_cost <= provider.cost_limit.max_daily_cost
            and spend.monthly + estimated_cost <= provider.cost_limit.max_monthly_cost
        )

    async def record_spend(self, provider_id: str, actual_cost: float) -> None:
        """Add the cost of a successful call to the current day and month."""
        if actual_cost < 0:
            raise ValueError(f"Cost must be non-negative, got {actual_cost}")

        async with self._lock:
            day, month = self._periods()
            self._prune(day, month)
            self._daily[(provider_id, day)] = self._daily.get((provider_id, day), 0.0) + actual_cost
            self._monthly[(provider_id, month)] = self._monthly.get((provider_id, month), 0.0) + actual_cost
            self._total_cost += actual_cost

        logger.debug(
            f"Recorded spend for {provider_id}",
            extra={"provider": provider_id, "cost": actual_cost, "day": day},
        )

    @property
    def total_cost(self) -> float:
        """Lifetime spend across all providers."""
        return self._total_cost

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        day, month = self._periods()
        providers = {key[0] for key in self._daily} | {key[0] for key in self._monthly}
        return {
            provider_id: {
                "daily": self._daily.get((provider_id, day), 0.0),
                "monthly": self._monthly.get((provider_id, month), 0.0),
            }
            for provider_id in sorted(providers)
        }
