"""Provider clients: the boundary between the gateway and upstream model APIs.

Vendor clients (OpenAI, Anthropic, local HTTP) are importable from their
modules; ``CompositeProviderClient.default()`` wires all of them.
"""

from .base import ProviderClient, ProviderInvocationError, calculate_cost
from .composite import CompositeProviderClient
from .errors import ErrorMapper
from .retry import RetryConfig, RetryManager

__all__ = [
    "ProviderClient",
    "ProviderInvocationError",
    "calculate_cost",
    "CompositeProviderClient",
    "ErrorMapper",
    "RetryConfig",
    "RetryManager",
]
