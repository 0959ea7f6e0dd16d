"""Rate limiting dependency for FastAPI routes.

Wires the rate limiting adapter into the HTTP layer. Clients are identified
by the connecting IP supplied by the trusted edge proxy; requests without it
all share the ``UNKNOWN_CLIENT`` budget.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Depends, Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitedAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
RATE_LIMITED_MESSAGE = "Too many requests. Please wait a moment."

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_entries,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            max_entries=settings.app.rate_limit_max_entries,
        )
        _limiter_config = config

    return _limiter


def get_client_id(request: Request) -> str:
    """Read the client identifier from the trusted proxy header."""

    value = request.headers.get(settings.app.client_ip_header)
    if value is None or not value.strip():
        return UNKNOWN_CLIENT
    return value.strip()


def _hash_client_id(client_id: str) -> str:
    """Hash the client id for logging without exposing the address."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


async def enforce_rate_limit(
    request: Request,
    limiter: AbstractRateLimiter = Depends(get_rate_limiter),
) -> None:
    """FastAPI dependency enforcing the per-client request budget.

    Raises:
        RateLimitedAppError: When the client exceeded its budget (HTTP 429).
    """

    if not settings.app.rate_limit_enabled:
        return

    client_id = get_client_id(request)
    result = limiter.consume(client_id)

    log_extra = {
        "client_hash": _hash_client_id(client_id),
        "limit": result.limit,
        "remaining": result.remaining,
        "reset_at": result.reset_at,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": retry_after})

    raise RateLimitedAppError(
        code="rate_limited",
        message=RATE_LIMITED_MESSAGE,
        details={"retry_after": retry_after},
    )
