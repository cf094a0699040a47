"""
WebSocket endpoints for presence and direct messaging.
"""

import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/presence")
async def websocket_presence_endpoint(websocket: WebSocket):
    """WebSocket endpoint for the online roster and direct messages.

    The session cookie is optional: connections without a valid token are
    accepted anonymously, receive roster updates and cannot send.
    """
    connection = None

    try:
        connection = await websocket_manager.connect(websocket)

        async with websocket_manager.watch(connection):
            while True:
                try:
                    message = await websocket.receive()
                except WebSocketDisconnect:
                    break
                except Exception as e:
                    # Likely closed by heartbeat eviction; avoid tight error loop
                    logger.debug(f"Error receiving WebSocket message: {e}")
                    break

                if message["type"] == "websocket.disconnect":
                    break

                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                await websocket_manager.handle_frame(connection, raw)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected during handshake")
    except Exception as e:
        logger.error(f"WebSocket endpoint error: {e}")

    finally:
        if connection is not None:
            try:
                await websocket_manager.disconnect(connection)
            except Exception as e:
                logger.error(f"Error cleaning up WebSocket connection: {e}")


# Health check endpoint for WebSocket service
@router.get("/health")
async def websocket_health():
    """Health check for WebSocket service."""
    return {
        "status": "healthy",
        "active_connections": websocket_manager.get_connections_count(),
        "identified_connections": websocket_manager.get_identified_count(),
    }
