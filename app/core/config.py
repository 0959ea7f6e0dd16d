"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_ALLOWED_ORIGIN = "https://poomxchapon.github.io"
DEFAULT_DEV_ORIGINS = ["http://localhost:5500"]
DEFAULT_LOOPBACK_PREFIX = "http://127.0.0.1"


class GeminiSettings(BaseSettings):
    """Upstream Gemini API configuration.

    The API key is optional at startup: a missing key is reported per request
    as a misconfiguration (HTTP 500) rather than preventing the app from booting.
    """

    api_key: str | None = Field(
        None,
        description="Gemini API key, sent as the ?key= query parameter",
    )
    model: str = Field(
        "gemini-2.0-flash",
        description="Model used for generateContent calls",
    )
    base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        description="Root of the generative-language REST API",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Timeout for the outbound generateContent call",
        gt=0,
    )
    temperature: float = Field(
        0.7,
        description="Sampling temperature sent in generationConfig",
    )
    max_output_tokens: int = Field(
        512,
        description="maxOutputTokens sent in generationConfig",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        case_sensitive=False,
    )


class CorsSettings(BaseSettings):
    """Browser origin policy."""

    allowed_origin: str = Field(
        DEFAULT_ALLOWED_ORIGIN,
        description="Production origin allowed to call the API",
        validation_alias=AliasChoices("ALLOWED_ORIGIN", "CORS_ALLOWED_ORIGIN"),
    )
    dev_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DEV_ORIGINS),
        description="Additional exact-match origins (JSON list in env)",
    )
    loopback_prefix: str = Field(
        DEFAULT_LOOPBACK_PREFIX,
        description="Any origin starting with this prefix is allowed; empty disables",
    )

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    docs_enabled: bool = Field(
        False,
        description="Expose /docs and /openapi.json (development only)",
    )
    client_ip_header: str = Field(
        "CF-Connecting-IP",
        description="Trusted proxy header carrying the connecting client IP",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_requests: int = Field(
        15,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_max_entries: int = Field(
        10_000,
        description="Maximum number of tracked clients before LRU eviction",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include Retry-After when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Nested settings are built via default_factory so each reads its own
    env prefix.
    """

    app_env: str = APP_ENV
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
