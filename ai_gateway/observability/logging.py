"""
Structured logging utility for gateway components.

This module provides a consistent logging interface for the cache, router,
health monitor and facade, ensuring structured log lines with standard
fields like component, provider and request_id.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional


class GatewayLogger:
    """Structured logger for gateway components."""

    def __init__(self, component: str):
        """
        Initialize logger for a specific component.

        Args:
            component: Name of the component (e.g., "cache", "router")
        """
        self.component = component
        self.logger = logging.getLogger(f"ai_gateway.{component}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with structured fields."""
        fields = [f"component={self.component}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, provider: Optional[str] = None,
              request_id: Optional[str] = None, **kwargs):
        """Log debug message with structured fields."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                self._format_message(message, provider=provider, request_id=request_id, **kwargs)
            )

    def info(self, message: str, provider: Optional[str] = None,
             request_id: Optional[str] = None, **kwargs):
        """Log info message with structured fields."""
        self.logger.info(
            self._format_message(message, provider=provider, request_id=request_id, **kwargs)
        )

    def warning(self, message: str, provider: Optional[str] = None,
                request_id: Optional[str] = None, error: Optional[BaseException] = None, **kwargs):
        """Log warning message with structured fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.warning(
            self._format_message(message, provider=provider, request_id=request_id, **kwargs)
        )

    def error(self, message: str, provider: Optional[str] = None,
              request_id: Optional[str] = None, error: Optional[BaseException] = None, **kwargs):
        """Log error message with structured fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.error(
            self._format_message(message, provider=provider, request_id=request_id, **kwargs)
        )

    @contextmanager
    def track_request(self, method: str, request_id: Optional[str] = None, **fields: Any):
        """
        Context manager to track request timing and log key events.

        Args:
            method: The operation being tracked (e.g., "send_request")
            request_id: Optional request ID (generated if not provided)
            **fields: Extra structured fields for the start line

        Yields:
            Dict with request metadata; callers may add fields (e.g. provider)
            that are included in the completion line
        """
        if request_id is None:
            request_id = str(uuid.uuid4())[:8]

        start_time = time.time()

        self.debug(f"Starting {method}", request_id=request_id, **fields)

        metadata: Dict[str, Any] = {
            'request_id': request_id,
            'method': method,
            'start_time': start_time,
        }

        try:
            yield metadata

            duration = time.time() - start_time
            self.info(
                f"Completed {method}",
                provider=metadata.get('provider'),
                request_id=request_id,
                cached=metadata.get('cached'),
                duration_ms=int(duration * 1000),
            )

        except Exception as e:
            duration = time.time() - start_time
            self.error(
                f"Failed {method}",
                provider=metadata.get('provider'),
                request_id=request_id,
                duration_ms=int(duration * 1000),
                error=e,
            )
            raise
