"""
Presence relay service: online roster and direct messages over WebSockets.
"""

import logging
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import auth_router, messages_router, websocket_router
from app.core.config import settings
from app.db.database import close_mongo_connection, connect_to_mongo
from app.dependencies import get_message_store
from app.middleware import timing_middleware
from app.schemas.base import BaseResponse
from app.websocket.manager import websocket_manager

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# (router, mount prefix)
ROUTERS = [
    (auth_router, "/api/v1"),
    (messages_router, "/api/v1"),
    (websocket_router, "/ws"),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect storage before serving; release heartbeat timers and storage after."""
    await connect_to_mongo()
    store = get_message_store()
    logger.info(
        f"{settings.APP_NAME} ready: messages in {type(store).__name__}, "
        f"heartbeat every {settings.HEARTBEAT_INTERVAL_SECONDS}s "
        f"(ack within {settings.HEARTBEAT_TIMEOUT_SECONDS}s)"
    )

    yield

    logger.info(f"Stopping with {websocket_manager.get_connections_count()} live connections")
    await websocket_manager.shutdown()
    await close_mongo_connection()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Realtime presence roster and direct message relay over WebSockets",
    lifespan=lifespan,
)

# The session cookie is only sent cross-origin with credentials allowed
cors_kwargs = dict(
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)
if settings.DEBUG:
    cors_kwargs["allow_origin_regex"] = ".*"
app.add_middleware(CORSMiddleware, **cors_kwargs)
app.middleware("http")(timing_middleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=BaseResponse.error("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus a summary of the relay's state."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "connections": websocket_manager.get_connections_count(),
        "message_store": "memory" if settings.USE_IN_MEMORY_STORE else "mongodb",
    }


for router, prefix in ROUTERS:
    app.include_router(router, prefix=prefix)


def main():
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
