"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"error": "<message>"}``:
- AppError subclasses → the status they declare (or the upstream status)
- Framework 404/405 → 404 "Not found" (only POST /api/chat exists)
- Unexpected Exception → generic 500 (safety net)
"""

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError, NotFoundAppError, RateLimitedAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Not found"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error body shared by all handlers."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status and message.
    """
    status_code = exc.resolve_status()

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "details": exc.details or {},
            "request_id": get_request_id(),
        },
    )

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedAppError) and settings.app.rate_limit_include_headers:
        retry_after = (exc.details or {}).get("retry_after")
        if retry_after is not None:
            headers["Retry-After"] = str(retry_after)

    return error_response(status_code, exc.message, headers or None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Map framework routing errors onto the API's error shape.

    Unknown paths and unsupported methods both surface as 404.
    """
    if exc.status_code in (404, 405):
        return await app_error_handler(
            request,
            NotFoundAppError(code="not_found", message=NOT_FOUND_MESSAGE),
        )

    logger.warning(
        "http_exception_handled",
        extra={"status_code": exc.status_code, "request_path": request.url.path},
    )
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Runs outside the CORS and request-id middleware, so the headers they would
    have added are rebuilt from ``request.state``. No stack traces reach the
    client.
    """
    request_id = getattr(request.state, "request_id", None)
    if not isinstance(request_id, str):
        request_id = None

    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id or get_request_id(),
        },
    )

    headers: dict[str, str] = {}
    cors = getattr(request.state, "cors_headers", None)
    if isinstance(cors, dict):
        headers.update(cors)
    if request_id:
        headers[settings.log.request_id_header] = request_id
        started = getattr(request.state, "request_started", None)
        if isinstance(started, float):
            headers["X-Request-Duration-ms"] = f"{(time.perf_counter() - started) * 1000:.2f}"
    return error_response(500, INTERNAL_ERROR_MESSAGE, headers or None)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with a FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
