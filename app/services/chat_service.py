"""Chat service turning browser chat requests into Gemini replies.

Handles:
- Presence validation of ``messages`` and ``systemPrompt``
- Lazy construction of the upstream client (missing key → 500)
- Interpretation of the first Gemini candidate (safety filter, fallback text)
"""

import logging
from typing import Any, Callable

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client
from app.core.errors import SafetyFilteredAppError, ValidationAppError
from app.schemas.chat import ChatReply, ChatRequest

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing messages or systemPrompt"
SAFETY_MESSAGE = "Response filtered for safety"
FALLBACK_REPLY = "Sorry, I could not generate a response."
SAFETY_FINISH_REASON = "SAFETY"


def _is_present(value: Any) -> bool:
    """Return False for null, empty string, zero and false.

    Empty lists and objects still count as present.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0
    return True


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def extract_reply(data: dict[str, Any]) -> str:
    """Pick the reply text out of a generateContent response.

    Args:
        data: Decoded Gemini response body.

    Returns:
        Text of the first part of the first candidate, or FALLBACK_REPLY.

    Raises:
        SafetyFilteredAppError: If the first candidate was stopped for safety.
    """
    candidate = _first(_get(data, "candidates"))

    if _get(candidate, "finishReason") == SAFETY_FINISH_REASON:
        raise SafetyFilteredAppError(code="safety_filtered", message=SAFETY_MESSAGE)

    text = _get(_first(_get(_get(candidate, "content"), "parts")), "text")
    if isinstance(text, str) and text:
        return text
    return FALLBACK_REPLY


class ChatService:
    """Relays a chat conversation to the upstream model.

    Attributes:
        client_factory: Builds the upstream client; invoked per request so
            configuration problems are reported after input validation.
    """

    def __init__(
        self,
        client_factory: Callable[[], AbstractLLMClient] = create_llm_client,
    ) -> None:
        self.client_factory = client_factory

    def parse_request(self, payload: Any) -> ChatRequest:
        """Validate the decoded JSON body.

        Raises:
            ValidationAppError: If either field is absent or empty.
        """
        if not isinstance(payload, dict):
            payload = {}

        messages = payload.get("messages")
        system_prompt = payload.get("systemPrompt")
        if not (_is_present(messages) and _is_present(system_prompt)):
            raise ValidationAppError(code="missing_fields", message=MISSING_FIELDS_MESSAGE)

        return ChatRequest(messages=messages, system_prompt=system_prompt)

    async def reply(self, payload: Any) -> ChatReply:
        """Validate, call the upstream, and build the reply.

        Args:
            payload: Decoded JSON request body.

        Returns:
            ChatReply with the model text (or the fallback text).

        Raises:
            ValidationAppError: Missing messages or systemPrompt.
            ConfigurationAppError: Upstream credential not configured.
            UpstreamAppError / UpstreamUnreachableAppError: Upstream failures.
            SafetyFilteredAppError: Reply withheld for safety.
        """
        request = self.parse_request(payload)
        client = self.client_factory()

        data = await client.generate_content(
            request.messages,
            system_prompt=request.system_prompt,
        )
        reply = extract_reply(data)

        logger.info(
            "chat.reply",
            extra={
                "fallback": reply == FALLBACK_REPLY,
                "reply_chars": len(reply),
            },
        )
        return ChatReply(reply=reply)
