"""CORS policy and the middleware that applies it.

The policy never omits ``Access-Control-Allow-Origin``: disallowed origins get
the configured production origin instead of their own, so the browser rejects
the response on mismatch.
"""

from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Request, Response

from app.core.config import DEFAULT_DEV_ORIGINS, DEFAULT_LOOPBACK_PREFIX, settings

logger = logging.getLogger(__name__)

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"
MAX_AGE_SECONDS = "86400"


def is_origin_allowed(
    origin: str | None,
    allowed_origin: str,
    *,
    dev_origins: Iterable[str] = DEFAULT_DEV_ORIGINS,
    loopback_prefix: str | None = DEFAULT_LOOPBACK_PREFIX,
) -> bool:
    if not origin:
        return False
    if origin == allowed_origin or origin in set(dev_origins):
        return True
    return bool(loopback_prefix) and origin.startswith(loopback_prefix)


def cors_headers(
    origin: str | None,
    allowed_origin: str,
    *,
    dev_origins: Iterable[str] = DEFAULT_DEV_ORIGINS,
    loopback_prefix: str | None = DEFAULT_LOOPBACK_PREFIX,
) -> dict[str, str]:
    """Compute CORS response headers for a request origin.

    Args:
        origin: Value of the request's Origin header, if any.
        allowed_origin: Configured production origin.
        dev_origins: Extra origins allowed by exact match.
        loopback_prefix: Origins starting with this prefix are allowed;
            falsy disables the allowance.

    Returns:
        Header map; always carries the method/header/max-age metadata.
    """

    allowed = is_origin_allowed(
        origin,
        allowed_origin,
        dev_origins=dev_origins,
        loopback_prefix=loopback_prefix,
    )
    return {
        "Access-Control-Allow-Origin": origin if allowed and origin else allowed_origin,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE_SECONDS,
    }


def headers_for_request(request: Request) -> dict[str, str]:
    """Compute CORS headers for a request using the configured policy."""
    return cors_headers(
        request.headers.get("Origin"),
        settings.cors.allowed_origin,
        dev_origins=settings.cors.dev_origins,
        loopback_prefix=settings.cors.loopback_prefix,
    )


async def cors_middleware(request: Request, call_next) -> Response:
    """Answer preflights and stamp CORS headers on every response.

    The computed headers are also stored on ``request.state.cors_headers`` so
    the fallback exception handler, which runs outside this middleware, can
    attach them too.
    """

    headers = headers_for_request(request)
    request.state.cors_headers = headers

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    response: Response = await call_next(request)
    response.headers.update(headers)
    return response
