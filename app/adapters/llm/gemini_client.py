"""Gemini generateContent client adapter (REST over httpx)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import UpstreamAppError, UpstreamUnreachableAppError

logger = logging.getLogger(__name__)

UNREACHABLE_MESSAGE = "Failed to reach Gemini API"


class GeminiClient(AbstractLLMClient):
    """Client for the Gemini ``models/{model}:generateContent`` endpoint.

    The API key travels as the ``key`` query parameter. Each call opens a
    short-lived ``httpx.AsyncClient`` bound by ``timeout_seconds``; there are
    no retries.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
        max_output_tokens: int = 512,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name (e.g., "gemini-2.0-flash").
            base_url: API root, without trailing slash.
            timeout_seconds: Timeout for the whole request in seconds.
            temperature: Sampling temperature for generationConfig.
            max_output_tokens: Output token cap for generationConfig.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(self, contents: Any, system_prompt: Any) -> dict[str, Any]:
        """Map a chat request onto the generateContent request body."""
        return {
            "system_instruction": {"parts": [{"text": system_prompt}]},
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    async def generate_content(
        self,
        contents: Any,
        *,
        system_prompt: Any,
    ) -> dict[str, Any]:
        """Call generateContent and return the decoded response body.

        Raises:
            UpstreamAppError: Non-2xx answer; carries the upstream status.
            UpstreamUnreachableAppError: Transport failure, timeout, or a 2xx
                body that is not a JSON object.
        """
        payload = self.build_payload(contents, system_prompt)

        logger.info(
            "gemini.request",
            extra={"model": self.model, "timeout_s": self.timeout_seconds},
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.error(
                "gemini.unreachable",
                extra={"model": self.model, "error_type": type(exc).__name__},
            )
            raise UpstreamUnreachableAppError(
                code="upstream_unreachable",
                message=UNREACHABLE_MESSAGE,
                details={"model": self.model},
            ) from exc

        if not response.is_success:
            raise self._upstream_error(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise self._invalid_body_error(response) from exc

        if not isinstance(data, dict):
            raise self._invalid_body_error(response)

        logger.info(
            "gemini.response",
            extra={"model": self.model, "upstream_status": response.status_code},
        )
        return data

    def _invalid_body_error(self, response: httpx.Response) -> UpstreamUnreachableAppError:
        """A 2xx body that is not a JSON object is treated as unreachable."""
        logger.error(
            "gemini.invalid_body",
            extra={"model": self.model, "upstream_status": response.status_code},
        )
        return UpstreamUnreachableAppError(
            code="upstream_invalid_body",
            message=UNREACHABLE_MESSAGE,
            details={"model": self.model, "upstream_status": response.status_code},
        )

    def _upstream_error(self, response: httpx.Response) -> UpstreamAppError:
        """Translate a non-success upstream response into an error.

        The upstream's ``error.message`` is used when present; otherwise a
        generic message naming the status code.
        """
        try:
            body = response.json()
        except ValueError:
            body = {}

        message = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message")

        logger.warning(
            "gemini.upstream_error",
            extra={
                "model": self.model,
                "upstream_status": response.status_code,
                "has_message": bool(message),
            },
        )

        return UpstreamAppError(
            code="upstream_error",
            message=str(message) if message else f"Gemini API error {response.status_code}",
            details={
                "http_status": response.status_code,
                "upstream_status": response.status_code,
                "model": self.model,
            },
        )
