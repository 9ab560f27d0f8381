"""Resolved upstream model configuration and SDK client construction."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from anythingai.config import Settings
from anythingai.errors import ChatError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMClient:
    """Immutable descriptor for the hosted model.

    Created via ``resolve_llm_client()``, not intended for direct construction.
    """

    model: str
    api_key: str | None
    timeout: float = 60.0

    def create_anthropic_client(self, *, max_retries: int = 0):
        """Create an ``AsyncAnthropic`` client.

        SDK-level retries default to 0: rate-limit retries are owned by the
        generation client's backoff loop.  Raises ``ChatError`` when no API key
        is configured.
        """
        from anthropic import AsyncAnthropic

        if not self.api_key:
            raise ChatError(ErrorKind.SERVER_ERROR, "Upstream API key is not configured.")

        return AsyncAnthropic(
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=max_retries,
        )

    def format_api_error(self, error: Exception) -> str:
        """Return a user-friendly message for an upstream failure."""
        error_str = str(error)
        if "api key" in error_str.lower() or "authentication" in error_str.lower():
            return "The AI service is not configured correctly. Please contact the administrator."
        if "not_found" in error_str or "not found" in error_str.lower():
            return f"Model '{self.model}' is not available."
        return f"AI service error: {error_str}"


def resolve_llm_client(settings: Settings) -> LLMClient:
    """Resolve settings into an ``LLMClient``."""
    if not settings.anthropic_api_key:
        logger.warning("No upstream API key set; chat requests will fail until one is configured.")
    return LLMClient(
        model=settings.anthropic_model,
        api_key=settings.anthropic_api_key,
        timeout=settings.upstream_timeout,
    )
