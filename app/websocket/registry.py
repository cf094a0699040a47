"""
Registry of live WebSocket connections.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from app.models.presence import Identity, LivenessState

logger = logging.getLogger(__name__)


class Connection:
    """One live WebSocket session, optionally bound to an identity.

    The identity is fixed at construction. The heartbeat monitor owns
    ``liveness`` and ``probe_deadline``; everything else is read-only.
    Outbound frames go through a per-connection lock so concurrent senders
    (roster broadcasts, deliveries, probes) never interleave on the socket.
    """

    def __init__(self, websocket, identity: Optional[Identity] = None, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self._identity = identity
        self.liveness: LivenessState = LivenessState.ALIVE
        self.probe_deadline: Optional[float] = None
        self._send_lock = asyncio.Lock()

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def user_id(self) -> Optional[str]:
        return self._identity.user_id if self._identity else None

    async def send_text(self, text: str) -> None:
        async with self._send_lock:
            await self.websocket.send_text(text)

    async def close(self, code: int, reason: str = "") -> None:
        await self.websocket.close(code=code, reason=reason)

    def __repr__(self) -> str:
        who = self._identity.username if self._identity else "anonymous"
        return f"<Connection {self.connection_id} {who} {self.liveness.value}>"


class ConnectionRegistry:
    """Set of live connections shared by every connection handler.

    add, remove and snapshot are serialized by one lock. Snapshots are
    copies, so callers iterate for delivery without holding the lock and a
    concurrent removal never mutates a list being iterated.
    """

    def __init__(self):
        # connection_id -> connection, insertion ordered
        self._connections: Dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    async def add(self, connection: Connection) -> None:
        async with self._lock:
            self._connections[connection.connection_id] = connection
        logger.debug(f"Registered {connection!r} ({len(self._connections)} live)")

    async def remove(self, connection: Connection) -> bool:
        """Remove a connection. Returns False if it was already gone."""
        async with self._lock:
            removed = self._connections.pop(connection.connection_id, None) is not None
        if removed:
            logger.debug(f"Deregistered {connection!r} ({len(self._connections)} live)")
        return removed

    async def snapshot(self) -> List[Connection]:
        async with self._lock:
            return list(self._connections.values())

    def identified_count(self) -> int:
        return sum(1 for c in self._connections.values() if c.identity is not None)

    def __contains__(self, connection: Connection) -> bool:
        return connection.connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
