from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from fastapi import FastAPI

from app.api.routes import chat_router
from app.core.config import settings
from app.core.cors import cors_middleware
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    docs_enabled = settings.app.docs_enabled
    app = FastAPI(
        title="Chat Relay API",
        description=(
            "Relays browser chat conversations to the Gemini API with a CORS "
            "policy and a per-client rate limit."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        # Only the exact /api/chat path exists; "/api/chat/" must 404, not redirect.
        redirect_slashes=False,
    )

    # Middleware: the last registered runs outermost, so request ids wrap CORS.
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(chat_router, prefix="/api")

    return app
