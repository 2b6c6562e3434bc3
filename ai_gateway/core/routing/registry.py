"""Registration-ordered catalog of routable providers."""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from ...models.providers import ProviderConfig

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Holds the providers the router may choose from.

    Iteration follows registration order, which is also the router's
    tie-break order. Disabled providers are skipped at registration.
    """

    def __init__(self, providers: Optional[Iterable[ProviderConfig]] = None):
        self._providers: Dict[str, ProviderConfig] = {}
        for provider in providers or ():
            self.register(provider)

    def register(self, provider: ProviderConfig) -> bool:
        """
        Add or replace a provider.

        Returns:
            False if the provider is disabled and was not registered
        """
        if not provider.enabled:
            logger.info(f"Skipping disabled provider {provider.id}", extra={"provider": provider.id})
            return False
        self._providers[provider.id] = provider
        logger.debug(f"Registered provider {provider.id}", extra={"provider": provider.id})
        return True

    def unregister(self, provider_id: str) -> bool:
        return self._providers.pop(provider_id, None) is not None

    def get(self, provider_id: str) -> Optional[ProviderConfig]:
        return self._providers.get(provider_id)

    def list(self) -> List[ProviderConfig]:
        return list(self._providers.values())

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers
