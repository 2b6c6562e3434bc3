"""
Base Provider Client Interface

This module defines the abstract base class for the clients that actually
call an upstream model. The gateway treats them as opaque: whatever a
client raises reaches the caller unchanged.
"""

import time
from abc import ABC, abstractmethod
from typing import Optional

from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest, GatewayResponse, TokenUsage


class ProviderClient(ABC):
    """
    Abstract base class for provider clients.

    A client is responsible for:
    - Translating a GatewayRequest into the vendor's API call
    - Honouring the provider's timeout and retry settings
    - Normalizing the result to GatewayResponse (usage, cost, latency)
    - Raising ProviderInvocationError for transport and API failures

    Clients should NOT contain routing, caching or spend tracking.
    """

    @abstractmethod
    async def invoke(self, provider: ProviderConfig, request: GatewayRequest) -> GatewayResponse:
        """
        Run one generation against ``provider``.

        Args:
            provider: The selected provider configuration
            request: The gateway request

        Returns:
            GatewayResponse with usage, cost and latency filled in

        Raises:
            ProviderInvocationError: For provider-side failures
        """
        pass

    async def aclose(self) -> None:
        """Release network resources. Default is a no-op."""
        return None

    @staticmethod
    def build_response(
        provider: ProviderConfig,
        request: GatewayRequest,
        content: str,
        usage: TokenUsage,
        finish_reason: Optional[str],
        started_at: float,
    ) -> GatewayResponse:
        """Assemble a normalized response; latency is measured from ``started_at``."""
        return GatewayResponse(
            id=f"resp-{request.id}",
            request_id=request.id,
            provider_id=provider.id,
            content=content,
            usage=usage,
            cost=calculate_cost(usage, provider),
            latency_ms=(time.time() - started_at) * 1000,
            model=provider.model,
            finish_reason=finish_reason,
            metadata={"vendor": provider.vendor.value},
        )


def calculate_cost(usage: TokenUsage, provider: ProviderConfig) -> float:
    """Price token usage with the provider's per-1k token rates."""
    input_cost = (usage.prompt_tokens / 1000) * provider.input_cost_per_1k_tokens
    output_cost = (usage.completion_tokens / 1000) * provider.output_cost_per_1k_tokens
    return input_cost + output_cost


class ProviderInvocationError(Exception):
    """
    Exception raised by provider clients.

    This should be raised for:
    - API transport errors
    - Authentication failures
    - Rate limiting
    - Unsupported vendors

    Attributes:
        message: Error message
        provider: Provider id
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = False  # Default, set by error mapper
        self.original_error: Optional[BaseException] = None
