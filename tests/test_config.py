"""Tests for environment-driven settings."""

import pytest

from app.core.config import (
    DEFAULT_ALLOWED_ORIGIN,
    AppSettings,
    CorsSettings,
    GeminiSettings,
)


def test_cors_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ALLOWED_ORIGIN", raising=False)
    monkeypatch.delenv("CORS_ALLOWED_ORIGIN", raising=False)

    cors = CorsSettings()

    assert cors.allowed_origin == DEFAULT_ALLOWED_ORIGIN == "https://poomxchapon.github.io"
    assert cors.dev_origins == ["http://localhost:5500"]
    assert cors.loopback_prefix == "http://127.0.0.1"


def test_allowed_origin_reads_unprefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_ORIGIN", "https://example.org")
    assert CorsSettings().allowed_origin == "https://example.org"


def test_loopback_prefix_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_LOOPBACK_PREFIX", "")
    monkeypatch.setenv("CORS_DEV_ORIGINS", '["http://localhost:4000"]')

    cors = CorsSettings()

    assert cors.loopback_prefix == ""
    assert cors.dev_origins == ["http://localhost:4000"]


def test_gemini_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "k-123")
    monkeypatch.setenv("GEMINI_TIMEOUT_SECONDS", "5")

    gemini = GeminiSettings()

    assert gemini.api_key == "k-123"
    assert gemini.timeout_seconds == 5.0
    assert gemini.model == "gemini-2.0-flash"


def test_gemini_key_is_optional(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assert GeminiSettings().api_key is None


def test_rate_limit_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_RATE_LIMIT_REQUESTS", "APP_RATE_LIMIT_WINDOW_SECONDS", "APP_CLIENT_IP_HEADER"):
        monkeypatch.delenv(name, raising=False)

    app_settings = AppSettings()

    assert app_settings.rate_limit_requests == 15
    assert app_settings.rate_limit_window_seconds == 60
    assert app_settings.client_ip_header == "CF-Connecting-IP"
