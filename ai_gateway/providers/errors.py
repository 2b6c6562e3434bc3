"""
Error mapping utilities for provider clients.

Converts SDK and transport exceptions into ProviderInvocationError with a
status code and a retryable flag the client's retry loop can act on.
"""

from typing import Optional, Dict, Any
import httpx

from .base import ProviderInvocationError


class ErrorMapper:
    """Maps vendor-specific errors to ProviderInvocationError."""

    # Common HTTP status codes that indicate retryable errors
    RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

    RATE_LIMIT_PHRASES = ('rate limit', 'too many requests', 'quota exceeded', 'too_many_requests')

    @staticmethod
    def get_status_code(error: Exception) -> Optional[int]:
        status_code = getattr(error, 'status_code', None)
        if status_code is None and isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
        return status_code

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Determine if an error is retryable.

        Args:
            error: The exception to check

        Returns:
            bool: True if the error is retryable
        """
        status_code = ErrorMapper.get_status_code(error)
        if status_code is not None and status_code in ErrorMapper.RETRYABLE_STATUS_CODES:
            return True

        if isinstance(error, (httpx.TimeoutException, httpx.ConnectError)):
            return True

        error_msg = str(error).lower()
        return any(phrase in error_msg for phrase in ErrorMapper.RATE_LIMIT_PHRASES)

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """
        Extract retry-after value from error if available.

        Returns:
            Optional[float]: Seconds to wait before retry, or None
        """
        response = getattr(error, 'response', None)
        headers = getattr(response, 'headers', None)
        if headers is not None:
            retry_after = headers.get('Retry-After')
            if retry_after:
                try:
                    return float(retry_after)
                except ValueError:
                    pass

        return getattr(error, 'retry_after', None)

    @staticmethod
    def map_error(error: Exception, provider_id: str, vendor: str) -> ProviderInvocationError:
        """
        Map an SDK or transport exception to ProviderInvocationError.

        Args:
            error: The original exception
            provider_id: Id of the provider that was called
            vendor: Vendor label used in the message (e.g. "OpenAI")

        Returns:
            ProviderInvocationError with metadata and the original error attached
        """
        if isinstance(error, ProviderInvocationError):
            return error

        status_code = ErrorMapper.get_status_code(error)
        if isinstance(error, httpx.TimeoutException):
            message = f"{vendor} request timed out: {error}"
        elif status_code == 401:
            message = f"{vendor} authentication failed: {error}"
        elif status_code == 429:
            message = f"{vendor} rate limit exceeded: {error}"
        else:
            message = f"{vendor} API error: {error}"

        provider_error = ProviderInvocationError(
            message=message,
            provider=provider_id,
            status_code=status_code,
            retry_after=ErrorMapper.get_retry_after(error),
        )
        provider_error.is_retryable = ErrorMapper.is_retryable(error)
        provider_error.original_error = error
        return provider_error

    @staticmethod
    def get_error_classification(error: ProviderInvocationError) -> Dict[str, Any]:
        """Get error details for logging."""
        return {
            'provider': error.provider,
            'status_code': error.status_code,
            'is_retryable': error.is_retryable,
            'retry_after': error.retry_after,
            'error_type': type(error.original_error).__name__ if error.original_error else None,
            'category': ErrorMapper._categorize_error(error),
        }

    @staticmethod
    def _categorize_error(error: ProviderInvocationError) -> str:
        if error.status_code:
            if error.status_code == 401:
                return 'authentication'
            elif error.status_code == 429:
                return 'rate_limit'
            elif error.status_code >= 500:
                return 'server_error'
            elif error.status_code >= 400:
                return 'client_error'

        if isinstance(error.original_error, httpx.TimeoutException):
            return 'timeout'
        if isinstance(error.original_error, httpx.TransportError):
            return 'network'

        return 'unknown'
