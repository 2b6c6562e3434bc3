from pydantic import BaseModel, Field
from typing import Optional, Dict
from enum import Enum

from .requests import RequestType


class ProviderVendor(str, Enum):
    """Supported upstream vendors."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"


class RateLimit(BaseModel):
    """Declared upstream rate limits. Enforcement belongs to the provider client."""
    requests_per_minute: int = Field(default=60, ge=0)
    tokens_per_minute: int = Field(default=10000, ge=0)


class CostLimit(BaseModel):
    """Spend caps in USD checked before every provider call."""
    max_daily_cost: float = Field(default=10.0, ge=0.0)
    max_monthly_cost: float = Field(default=200.0, ge=0.0)


class ProviderConfig(BaseModel):
    """
    Configuration for one routable provider (vendor + model).

    ``capabilities`` maps a request type to a 0-100 fit score for this
    provider's model; the router uses ``score - 50`` as the fit adjustment.
    """
    id: str
    vendor: ProviderVendor
    model: str
    description: str = ""
    base_url: Optional[str] = None
    api_key_env: Optional[str] = None
    capabilities: Dict[RequestType, float] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0, description="Call timeout in seconds")
    retry_attempts: int = Field(default=3, ge=0)
    rate_limit: RateLimit = Field(default_factory=RateLimit)
    cost_limit: CostLimit = Field(default_factory=CostLimit)
    input_cost_per_1k_tokens: float = Field(default=0.0, ge=0.0)
    output_cost_per_1k_tokens: float = Field(default=0.0, ge=0.0)
    enabled: bool = True

    def capability_for(self, request_type: RequestType) -> Optional[float]:
        """Return the fit score for a request type, or None if unrated."""
        return self.capabilities.get(RequestType(request_type))
