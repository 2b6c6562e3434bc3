import os
import time
from typing import Dict, Optional

from anthropic import AsyncAnthropic
from dotenv import load_dotenv

from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest, GatewayResponse, TokenUsage
from ..observability.logging import GatewayLogger
from .base import ProviderClient, ProviderInvocationError
from .errors import ErrorMapper
from .retry import RetryConfig, RetryManager

logger = GatewayLogger("providers.anthropic")

# Load environment variables
load_dotenv()


class AnthropicProviderClient(ProviderClient):
    """Anthropic messages API client."""

    def __init__(self, api_key: Optional[str] = None, max_tokens: int = 1024,
                 retry_manager: Optional[RetryManager] = None):
        self._api_key = api_key
        self.max_tokens = max_tokens
        self.retry_manager = retry_manager or RetryManager()
        self._clients: Dict[str, AsyncAnthropic] = {}

    def _client_for(self, provider: ProviderConfig) -> AsyncAnthropic:
        client = self._clients.get(provider.id)
        if client is None:
            api_key = self._api_key or os.getenv(provider.api_key_env or "ANTHROPIC_API_KEY")
            if not api_key:
                raise ProviderInvocationError(
                    f"Anthropic API key not found for provider {provider.id}",
                    provider=provider.id,
                    status_code=401,
                )
            kwargs = {"api_key": api_key, "timeout": provider.timeout, "max_retries": 0}
            if provider.base_url:
                kwargs["base_url"] = provider.base_url
            client = AsyncAnthropic(**kwargs)
            self._clients[provider.id] = client
        return client

    async def invoke(self, provider: ProviderConfig, request: GatewayRequest) -> GatewayResponse:
        started_at = time.time()
        client = self._client_for(provider)

        async def _call():
            try:
                return await client.messages.create(
                    model=provider.model,
                    max_tokens=self.max_tokens,
                    messages=[{"role": "user", "content": request.prompt}],
                )
            except Exception as e:
                raise ErrorMapper.map_error(e, provider.id, "Anthropic") from e

        message = await self.retry_manager.execute_with_retry(_call, RetryConfig.for_provider(provider))

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        input_tokens = getattr(message.usage, "input_tokens", 0) or 0
        output_tokens = getattr(message.usage, "output_tokens", 0) or 0
        usage = TokenUsage(
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )
        logger.debug("Token usage", provider=provider.id, request_id=request.id,
                     total_tokens=usage.total_tokens)

        return self.build_response(
            provider, request, text, usage, getattr(message, "stop_reason", None), started_at
        )

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
