"""Pytest configuration and fixtures shared across all test modules.

The environment is populated before any app import so that the settings
singleton is built with test values.
"""

import os
from typing import Any

import httpx
import pytest

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.adapters.llm.factory import create_llm_client  # noqa: E402
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter  # noqa: E402
from app.api.routes.chat import get_chat_service  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.rate_limit import get_rate_limiter  # noqa: E402
from app.services.chat_service import ChatService  # noqa: E402


def gemini_payload(text: str | None = "Hello from Gemini", finish_reason: str = "STOP") -> dict[str, Any]:
    """Build a minimal generateContent success body."""
    parts = [{"text": text}] if text is not None else []
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": parts},
                "finishReason": finish_reason,
            }
        ]
    }


class UpstreamStub:
    """httpx.MockTransport handler simulating the Gemini API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = gemini_payload()
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def respond(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def limiter() -> InMemoryFixedWindowRateLimiter:
    """Fresh limiter per test so request counts never leak between tests."""
    return InMemoryFixedWindowRateLimiter(limit=15, window_seconds=60)


@pytest.fixture
def app(limiter: InMemoryFixedWindowRateLimiter, upstream: UpstreamStub) -> FastAPI:
    application = create_app()
    service = ChatService(
        client_factory=lambda: create_llm_client(transport=httpx.MockTransport(upstream)),
    )
    application.dependency_overrides[get_rate_limiter] = lambda: limiter
    application.dependency_overrides[get_chat_service] = lambda: service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def chat_body() -> dict[str, Any]:
    return {
        "messages": [{"role": "user", "parts": [{"text": "Hi there"}]}],
        "systemPrompt": "You are a helpful portfolio assistant.",
    }
