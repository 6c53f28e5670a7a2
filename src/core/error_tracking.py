"""
PostHog error tracking

Reports request failures that surface as 500 responses.
"""

import logging
from typing import Any, Dict, Optional

from posthog import Posthog

logger = logging.getLogger(__name__)

SERVICE_NAME = "coderun-sandbox"


class ErrorTracker:
    """Process-wide PostHog client; disabled until configured"""

    _client: Optional[Posthog] = None

    @classmethod
    def initialize(cls, api_key: Optional[str], host: Optional[str] = None) -> None:
        """Initialize on application startup"""
        if not api_key or not host:
            logger.warning("PostHog API key or host not configured. Error tracking disabled.")
            cls._client = None
            return

        try:
            cls._client = Posthog(project_api_key=api_key, host=host, on_error=cls._on_error)
            logger.info(f"PostHog error tracking enabled (host: {host})")
        except Exception as e:
            logger.error(f"Failed to initialize PostHog client: {e}")
            cls._client = None

    @classmethod
    def _on_error(cls, error: Exception, items: Any) -> None:
        logger.error(f"PostHog client error: {error}")

    @classmethod
    def enabled(cls) -> bool:
        return cls._client is not None

    @classmethod
    def capture(cls, exception: Exception, properties: Optional[Dict[str, Any]] = None) -> None:
        """Send an exception event; never raises"""
        if cls._client is None:
            return

        event_properties = {
            "error_type": type(exception).__name__,
            "error_message": str(exception),
            "service": SERVICE_NAME,
            **(properties or {}),
        }
        try:
            cls._client.capture(
                distinct_id=SERVICE_NAME,
                event="$exception",
                properties=event_properties,
            )
            cls._client.flush()
        except Exception as e:
            logger.error(f"Failed to capture exception to PostHog: {e}")

    @classmethod
    def shutdown(cls) -> None:
        """Flush pending events and drop the client"""
        if cls._client is None:
            return
        try:
            cls._client.shutdown()
        except Exception as e:
            logger.error(f"Error shutting down PostHog client: {e}")
        finally:
            cls._client = None


def capture_exception(exception: Exception, properties: Optional[Dict[str, Any]] = None) -> None:
    """Capture an exception to PostHog"""
    ErrorTracker.capture(exception, properties)
