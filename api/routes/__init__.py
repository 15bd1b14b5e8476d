"""API routes."""

from api.routes.assessment import router as assessment_router
from api.routes.chat import router as chat_router

__all__ = ["assessment_router", "chat_router"]
