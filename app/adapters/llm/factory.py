"""Factory for creating the upstream LLM client from settings."""

from __future__ import annotations

import httpx

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import settings
from app.core.errors import ConfigurationAppError

MISSING_API_KEY_MESSAGE = "API key not configured"


def create_llm_client(transport: httpx.AsyncBaseTransport | None = None) -> AbstractLLMClient:
    """Instantiate the Gemini client from app.core.config.settings.

    Called per request, after the request body has been validated, so a
    missing key surfaces as a 500 only for otherwise well-formed requests.

    Args:
        transport: Optional httpx transport override.

    Returns:
        AbstractLLMClient: Configured client instance.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not configured.
    """
    if not settings.gemini.api_key:
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message=MISSING_API_KEY_MESSAGE,
        )

    return GeminiClient(
        api_key=settings.gemini.api_key,
        model=settings.gemini.model,
        base_url=settings.gemini.base_url,
        timeout_seconds=settings.gemini.timeout_seconds,
        temperature=settings.gemini.temperature,
        max_output_tokens=settings.gemini.max_output_tokens,
        transport=transport,
    )
