from typing import Dict, Optional

from ..models.providers import ProviderConfig, ProviderVendor
from ..models.requests import GatewayRequest, GatewayResponse
from .base import ProviderClient, ProviderInvocationError


class CompositeProviderClient(ProviderClient):
    """Dispatches each call to the client registered for the provider's vendor."""

    def __init__(self, clients: Optional[Dict[ProviderVendor, ProviderClient]] = None):
        self.clients: Dict[ProviderVendor, ProviderClient] = dict(clients or {})

    @classmethod
    def default(cls) -> "CompositeProviderClient":
        """Client set covering every bundled vendor."""
        from .anthropic import AnthropicProviderClient
        from .local import LocalProviderClient
        from .openai import OpenAIProviderClient

        return cls({
            ProviderVendor.OPENAI: OpenAIProviderClient(),
            ProviderVendor.ANTHROPIC: AnthropicProviderClient(),
            ProviderVendor.LOCAL: LocalProviderClient(),
        })

    def register(self, vendor: ProviderVendor, client: ProviderClient) -> None:
        self.clients[ProviderVendor(vendor)] = client

    async def invoke(self, provider: ProviderConfig, request: GatewayRequest) -> GatewayResponse:
        client = self.clients.get(provider.vendor)
        if client is None:
            raise ProviderInvocationError(
                f"Unsupported provider vendor: {provider.vendor.value}",
                provider=provider.id,
            )
        return await client.invoke(provider, request)

    async def aclose(self) -> None:
        for client in self.clients.values():
            await client.aclose()
