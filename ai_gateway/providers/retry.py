from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Type, TypeVar

from ..models.providers import ProviderConfig
from .base import ProviderInvocationError

T = TypeVar("T")


@dataclass
class RetryConfig:
    max_attempts: int = 3
    backoff_factor: float = 2.0
    retryable_errors: Iterable[Type[Exception]] = ()
    initial_delay: float = 0.25
    max_delay: float = 30.0

    @classmethod
    def for_provider(cls, provider: ProviderConfig) -> "RetryConfig":
        return cls(max_attempts=max(1, provider.retry_attempts))


class RetryManager:
    """
    Retry loop used by the bundled provider clients.

    This class handles:
    - Retry decisions from ProviderInvocationError.is_retryable
    - Exponential backoff with jitter
    - Respect for Retry-After values
    - Maximum delay caps
    """

    async def execute_with_retry(self, func: Callable[[], Awaitable[T]], config: RetryConfig) -> T:
        """
        Execute a function with retry logic.

        Raises:
            The last exception if all retries are exhausted
        """
        attempt = 0
        delay = config.initial_delay

        while True:
            try:
                return await func()
            except Exception as e:  # noqa: BLE001
                attempt += 1

                if not self._should_retry(e, attempt, config):
                    raise

                await asyncio.sleep(self._calculate_delay(e, delay, config))
                delay = min(delay * config.backoff_factor, config.max_delay)

    def _should_retry(self, error: Exception, attempt: int, config: RetryConfig) -> bool:
        if attempt >= config.max_attempts:
            return False

        if isinstance(error, ProviderInvocationError):
            return error.is_retryable

        return any(isinstance(error, error_type) for error_type in config.retryable_errors)

    def _calculate_delay(self, error: Exception, base_delay: float, config: RetryConfig) -> float:
        """Calculate retry delay, respecting Retry-After if present."""
        if isinstance(error, ProviderInvocationError) and error.retry_after:
            return min(error.retry_after, config.max_delay)

        # Jitter spreads out simultaneous retries
        jitter = random.uniform(0, 0.1 * base_delay)
        return min(base_delay + jitter, config.max_delay)
