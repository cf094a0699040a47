"""API package."""

from .auth import router as auth_router
from .messages import router as messages_router
from .websocket import router as websocket_router

__all__ = [
    "auth_router",
    "messages_router",
    "websocket_router",
]
