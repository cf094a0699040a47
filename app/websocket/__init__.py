"""WebSocket package for presence and direct messaging."""

from .manager import WebSocketManager, websocket_manager
from .auth import Authenticator
from .registry import Connection, ConnectionRegistry
from .heartbeat import HeartbeatMonitor
from .presence import PresenceBroadcaster, FullRosterBroadcaster
from .routing import MessageRouter, RouteOutcome, RouteResult

__all__ = [
    "WebSocketManager",
    "websocket_manager",
    "Authenticator",
    "Connection",
    "ConnectionRegistry",
    "HeartbeatMonitor",
    "PresenceBroadcaster",
    "FullRosterBroadcaster",
    "MessageRouter",
    "RouteOutcome",
    "RouteResult",
]
