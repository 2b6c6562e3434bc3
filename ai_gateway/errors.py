"""
Gateway error taxonomy.

Business conditions (no routable provider, spend cap) are raised to the
caller. Cache persistence failures are raised by persistence backends and
caught by the response cache, which logs them and carries on.
Errors coming from provider clients are never wrapped by the gateway.
"""

from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway admission and routing failures."""


class NoHealthyProvider(GatewayError):
    """No registered provider survived the health filter."""

    def __init__(self, message: str = "No healthy AI provider available",
                 request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class CostLimitExceeded(GatewayError):
    """
    The selected provider would exceed its daily or monthly spend cap.

    Attributes:
        provider_id: Provider that was selected
        estimated_cost: Estimated cost of the rejected request
        daily_spend: Spend recorded for the current day
        monthly_spend: Spend recorded for the current month
        max_daily_cost: Configured daily cap
        max_monthly_cost: Configured monthly cap
    """

    def __init__(
        self,
        provider_id: str,
        estimated_cost: float,
        daily_spend: float = 0.0,
        monthly_spend: float = 0.0,
        max_daily_cost: float = 0.0,
        max_monthly_cost: float = 0.0,
    ):
        super().__init__(
            f"Cost limit exceeded for provider {provider_id}: "
            f"estimated ${estimated_cost:.6f} on top of "
            f"${daily_spend:.6f}/day (cap ${max_daily_cost:.2f}) and "
            f"${monthly_spend:.6f}/month (cap ${max_monthly_cost:.2f})"
        )
        self.provider_id = provider_id
        self.estimated_cost = estimated_cost
        self.daily_spend = daily_spend
        self.monthly_spend = monthly_spend
        self.max_daily_cost = max_daily_cost
        self.max_monthly_cost = max_monthly_cost


class GatewayStopped(GatewayError):
    """The gateway shut down before a queued request was dispatched."""

    def __init__(self, message: str = "Gateway stopped before the request was dispatched",
                 request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class CachePersistenceError(GatewayError):
    """A persistence backend failed to read or write a cache snapshot."""

    def __init__(self, message: str, backend: str):
        super().__init__(message)
        self.backend = backend
