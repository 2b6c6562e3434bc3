import os
import time
from typing import Dict, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest, GatewayResponse, TokenUsage
from ..observability.logging import GatewayLogger
from .base import ProviderClient, ProviderInvocationError
from .errors import ErrorMapper
from .retry import RetryConfig, RetryManager

logger = GatewayLogger("providers.openai")

# Load environment variables
load_dotenv()


class OpenAIProviderClient(ProviderClient):
    """OpenAI chat completions client."""

    def __init__(self, api_key: Optional[str] = None, max_tokens: int = 1024,
                 retry_manager: Optional[RetryManager] = None):
        self._api_key = api_key
        self.max_tokens = max_tokens
        self.retry_manager = retry_manager or RetryManager()
        self._clients: Dict[str, AsyncOpenAI] = {}

    def _client_for(self, provider: ProviderConfig) -> AsyncOpenAI:
        """Lazy per-provider SDK client; SDK retries are off, retries happen here."""
        client = self._clients.get(provider.id)
        if client is None:
            api_key = self._api_key or os.getenv(provider.api_key_env or "OPENAI_API_KEY")
            if not api_key:
                raise ProviderInvocationError(
                    f"OpenAI API key not found for provider {provider.id}",
                    provider=provider.id,
                    status_code=401,
                )
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=provider.base_url,
                timeout=provider.timeout,
                max_retries=0,
            )
            self._clients[provider.id] = client
        return client

    async def invoke(self, provider: ProviderConfig, request: GatewayRequest) -> GatewayResponse:
        started_at = time.time()
        client = self._client_for(provider)

        async def _call():
            try:
                return await client.chat.completions.create(
                    model=provider.model,
                    messages=[{"role": "user", "content": request.prompt}],
                    max_tokens=self.max_tokens,
                )
            except Exception as e:
                raise ErrorMapper.map_error(e, provider.id, "OpenAI") from e

        completion = await self.retry_manager.execute_with_retry(_call, RetryConfig.for_provider(provider))

        choice = completion.choices[0]
        usage = TokenUsage(
            prompt_tokens=getattr(completion.usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(completion.usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(completion.usage, "total_tokens", 0) or 0,
        )
        logger.debug("Token usage", provider=provider.id, request_id=request.id,
                     total_tokens=usage.total_tokens)

        return self.build_response(
            provider, request, choice.message.content or "", usage, choice.finish_reason, started_at
        )

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
