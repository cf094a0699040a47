"""
WebSocket connection manager for presence and direct messaging.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import WebSocket

from app.dependencies import get_message_store
from app.models.presence import Identity
from app.repositories.base import MessageStore
from app.schemas.message import ControlFrame, ErrorFrame
from app.websocket.auth import Authenticator
from app.websocket.heartbeat import HeartbeatMonitor
from app.websocket.presence import FullRosterBroadcaster, PresenceBroadcaster
from app.websocket.registry import Connection, ConnectionRegistry
from app.websocket.routing import MessageRouter, RouteOutcome, RouteResult

logger = logging.getLogger(__name__)

PONG_FRAME = ControlFrame(type="pong").model_dump_json()


class WebSocketManager:
    """Wires the registry, heartbeat, presence and routing together for the endpoint."""

    def __init__(
        self,
        store: Optional[MessageStore] = None,
        registry: Optional[ConnectionRegistry] = None,
        authenticator: Optional[Authenticator] = None,
        broadcaster: Optional[PresenceBroadcaster] = None,
        monitor: Optional[HeartbeatMonitor] = None,
    ):
        # registry and store define __len__, so an empty one is falsy
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.authenticator = authenticator if authenticator is not None else Authenticator()
        self.broadcaster = broadcaster if broadcaster is not None else FullRosterBroadcaster(self.registry)
        self.monitor = monitor if monitor is not None else HeartbeatMonitor(self.registry, self.broadcaster)
        self.router = MessageRouter(self.registry, store if store is not None else get_message_store())

    async def connect(self, websocket: WebSocket) -> Connection:
        """Accept a WebSocket, resolve its identity, register it and announce the new roster."""
        result = self.authenticator.resolve(websocket.cookies)
        identity = result if isinstance(result, Identity) else None

        await websocket.accept()

        connection = Connection(websocket, identity)
        await self.registry.add(connection)
        logger.info(
            f"WebSocket connected for {identity.username if identity else 'anonymous'} "
            f"({connection.connection_id}), {len(self.registry)} live"
        )

        await self.broadcaster.notify()
        return connection

    @asynccontextmanager
    async def watch(self, connection: Connection):
        """Run the heartbeat for a connection for the duration of the block."""
        async with self.monitor.watch(connection):
            yield connection

    async def handle_frame(self, connection: Connection, raw) -> Optional[RouteResult]:
        """Dispatch one inbound frame: heartbeat control frames or a direct message."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            data = None

        if isinstance(data, dict) and data.get("type") == "pong":
            self.monitor.acknowledge(connection)
            return None
        if isinstance(data, dict) and data.get("type") == "ping":
            await self._send(connection, PONG_FRAME)
            return None

        result = await self.router.handle_inbound(connection, data if data is not None else raw)
        if result.outcome is RouteOutcome.FAILED:
            await self._send_error(connection, "Failed to send message")
        return result

    async def disconnect(self, connection: Connection) -> bool:
        """Deregister a connection and announce the new roster if it was still registered."""
        removed = await self.registry.remove(connection)
        if removed:
            logger.info(f"WebSocket disconnected ({connection.connection_id}), {len(self.registry)} live")
            await self.broadcaster.notify()
        return removed

    async def shutdown(self) -> None:
        """Release every heartbeat timer."""
        await self.monitor.shutdown()

    async def _send(self, connection: Connection, payload: str) -> None:
        try:
            await connection.send_text(payload)
        except Exception as e:
            logger.error(f"Error sending WebSocket message: {e}")

    async def _send_error(self, connection: Connection, error_message: str):
        """Send error frame to a single connection."""
        await self._send(connection, ErrorFrame(error=error_message).model_dump_json())

    def get_connections_count(self) -> int:
        """Get number of live connections."""
        return len(self.registry)

    def get_identified_count(self) -> int:
        """Get number of live connections bound to an identity."""
        return self.registry.identified_count()


# Global WebSocket manager instance
websocket_manager = WebSocketManager()
