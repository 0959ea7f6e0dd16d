from __future__ import annotations

from app.api.routes.chat import router as chat_router

__all__ = ["chat_router"]
