import time
from typing import Optional

import httpx

from ..models.providers import ProviderConfig
from ..models.requests import GatewayRequest, GatewayResponse, TokenUsage
from ..observability.logging import GatewayLogger
from .base import ProviderClient, ProviderInvocationError
from .errors import ErrorMapper
from .retry import RetryConfig, RetryManager

logger = GatewayLogger("providers.local")


class LocalProviderClient(ProviderClient):
    """
    Client for self-hosted models behind an OpenAI-compatible HTTP API.

    Posts to ``{provider.base_url}/v1/chat/completions``.
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, max_tokens: int = 1024,
                 retry_manager: Optional[RetryManager] = None):
        self._http = http_client or httpx.AsyncClient()
        self.max_tokens = max_tokens
        self.retry_manager = retry_manager or RetryManager()

    async def invoke(self, provider: ProviderConfig, request: GatewayRequest) -> GatewayResponse:
        if not provider.base_url:
            raise ProviderInvocationError(
                f"Provider {provider.id} has no base_url configured",
                provider=provider.id,
            )

        started_at = time.time()
        url = f"{provider.base_url.rstrip('/')}/v1/chat/completions"
        payload = {
            "model": provider.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "max_tokens": self.max_tokens,
        }

        async def _call():
            try:
                response = await self._http.post(url, json=payload, timeout=provider.timeout)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise ErrorMapper.map_error(e, provider.id, "Local model") from e

        data = await self.retry_manager.execute_with_retry(_call, RetryConfig.for_provider(provider))

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderInvocationError(
                f"Malformed response from {provider.id}: {e}",
                provider=provider.id,
                status_code=502,
            ) from e

        raw_usage = data.get("usage") or {}
        usage = TokenUsage(
            prompt_tokens=raw_usage.get("prompt_tokens", 0),
            completion_tokens=raw_usage.get("completion_tokens", 0),
            total_tokens=raw_usage.get("total_tokens", 0),
        )
        logger.debug("Token usage", provider=provider.id, request_id=request.id,
                     total_tokens=usage.total_tokens)

        return self.build_response(
            provider, request, content, usage, choice.get("finish_reason"), started_at
        )

    async def aclose(self) -> None:
        await self._http.aclose()
