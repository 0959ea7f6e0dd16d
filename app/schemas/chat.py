"""Pydantic schemas for the chat endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Inbound chat request.

    ``messages`` is forwarded verbatim as the Gemini ``contents`` array; its
    shape is validated upstream.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: Any = Field(
        ..., description="Conversation turns in Gemini `contents` format."
    )
    system_prompt: Any = Field(
        ...,
        alias="systemPrompt",
        description="System instruction text for the model.",
    )


class ChatReply(BaseModel):
    """Successful chat response."""

    reply: str = Field(..., description="Model reply text.")


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx response."""

    error: str = Field(..., description="Human-readable error message.")
