"""Tests for global exception handlers.

Validates that every exception type maps to the right HTTP status with the
flat ``{"error": message}`` body and no information leakage.
"""

import asyncio
import json
import time
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    ConfigurationAppError,
    NotFoundAppError,
    RateLimitedAppError,
    SafetyFilteredAppError,
    UpstreamAppError,
    UpstreamUnreachableAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers
from app.core.middleware import request_id_middleware


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationAppError(code="invalid_json", message="Invalid JSON"), 400),
            (NotFoundAppError(code="not_found", message="Not found"), 404),
            (ConfigurationAppError(code="llm_missing_api_key", message="API key not configured"), 500),
            (UpstreamUnreachableAppError(code="upstream_unreachable", message="Failed to reach Gemini API"), 502),
            (SafetyFilteredAppError(code="safety_filtered", message="Response filtered for safety"), 400),
        ],
    )
    def test_status_mapping(
        self, client: TestClient, app_with_handlers: FastAPI, error: AppError, status: int
    ) -> None:
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status
        assert response.json() == {"error": error.message}

    def test_upstream_status_passes_through(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/upstream")
        async def upstream():
            raise UpstreamAppError(
                code="upstream_error",
                message="Quota exceeded",
                details={"http_status": 429, "model": "gemini-2.0-flash"},
            )

        response = client.get("/upstream")

        assert response.status_code == 429
        assert response.json() == {"error": "Quota exceeded"}
        # Details are for logs only.
        assert "gemini-2.0-flash" not in response.text

    def test_rate_limited_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.get("/limited")
        async def limited():
            raise RateLimitedAppError(
                code="rate_limited",
                message="Too many requests. Please wait a moment.",
                details={"retry_after": 42},
            )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"


class TestFrameworkErrors:
    def test_unknown_path_is_not_found(self, client: TestClient) -> None:
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_wrong_method_is_not_found(self, client: TestClient, app_with_handlers: FastAPI) -> None:
        @app_with_handlers.post("/only-post")
        async def only_post():
            return {}

        response = client.get("/only-post")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}


class TestGeneralExceptionHandler:
    def test_unexpected_exception_returns_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ) -> None:
        app_with_handlers.middleware("http")(request_id_middleware)

        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("database password is hunter2")

        response = client.get("/crash", headers={"X-Request-ID": "req-crash"})

        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred. Please try again later."}
        assert "hunter2" not in response.text
        assert response.headers["X-Request-ID"] == "req-crash"
        assert float(response.headers["X-Request-Duration-ms"]) >= 0

    def test_reapplies_cors_headers_from_request_state(self) -> None:
        request = MagicMock()
        request.url.path = "/api/chat"
        request.method = "POST"
        request.state.cors_headers = {"Access-Control-Allow-Origin": "http://localhost:5500"}
        request.state.request_id = "req-123"
        request.state.request_started = time.perf_counter()

        response = asyncio.run(general_exception_handler(request, ValueError("boom")))

        assert response.status_code == 500
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5500"
        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Request-Duration-ms" in response.headers
        body = json.loads(bytes(response.body).decode())
        assert "Traceback" not in body["error"]
        assert "ValueError" not in body["error"]


def test_multiple_handler_setups_does_not_fail() -> None:
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers
