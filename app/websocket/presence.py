"""
Presence broadcasting: pushes the online roster to every live connection.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from app.models.presence import RosterEntry
from app.schemas.message import RosterFrame
from app.websocket.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


class PresenceBroadcaster(ABC):
    """Interface invoked after every registry change."""

    @abstractmethod
    async def notify(self) -> Optional[RosterFrame]:
        """Publish the current presence state to connected clients.

        Returns the roster frame that was sent, if the implementation builds one.
        """
        pass


class FullRosterBroadcaster(PresenceBroadcaster):
    """Sends the complete roster on every change. No diffing.

    Cost is one frame per live connection per event, which suits small
    presence lists.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    @staticmethod
    def build_roster(connections: List[Connection]) -> RosterFrame:
        """Project identified connections to roster entries, one per connection."""
        return RosterFrame(online=[
            RosterEntry(user_id=c.identity.user_id, username=c.identity.username)
            for c in connections
            if c.identity is not None
        ])

    async def notify(self) -> RosterFrame:
        connections = await self.registry.snapshot()
        roster = self.build_roster(connections)
        payload = roster.model_dump_json(by_alias=True)

        results = await asyncio.gather(
            *(connection.send_text(payload) for connection in connections),
            return_exceptions=True,
        )
        for connection, result in zip(connections, results):
            if isinstance(result, Exception):
                logger.warning(f"Failed to send roster to {connection!r}: {result}")

        logger.debug(f"Broadcast roster of {len(roster.online)} to {len(connections)} connections")
        return roster
