"""
Point-to-point message routing: persist first, then fan out to the recipient's connections.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.models.message import Message
from app.repositories.base import MessageStore
from app.schemas.message import DeliveredMessage, InboundMessage
from app.websocket.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


class RouteOutcome(str, Enum):
    DELIVERED = "delivered"
    DROPPED_MALFORMED = "dropped_malformed"
    DROPPED_ANONYMOUS = "dropped_anonymous"
    FAILED = "failed"


class RouteResult(BaseModel):
    """What happened to one inbound frame."""
    outcome: RouteOutcome
    message: Optional[Message] = None
    delivered_to: int = 0


class MessageRouter:
    """Validates, persists and delivers inbound direct messages."""

    def __init__(self, registry: ConnectionRegistry, store: MessageStore, store_timeout: Optional[float] = None):
        self.registry = registry
        self.store = store
        self.store_timeout = store_timeout if store_timeout is not None else settings.MESSAGE_STORE_TIMEOUT_SECONDS

    @staticmethod
    def parse(payload: Any) -> Optional[InboundMessage]:
        """Deserialize a `{recipient, text}` frame from raw JSON or an already decoded object."""
        try:
            if isinstance(payload, (str, bytes, bytearray)):
                return InboundMessage.model_validate_json(payload)
            return InboundMessage.model_validate(payload)
        except ValidationError:
            return None

    async def handle_inbound(self, connection: Connection, payload: Any) -> RouteResult:
        inbound = self.parse(payload)
        if inbound is None:
            logger.debug(f"Dropping malformed frame from {connection!r}")
            return RouteResult(outcome=RouteOutcome.DROPPED_MALFORMED)

        if connection.identity is None:
            logger.debug(f"Dropping message from anonymous {connection!r}")
            return RouteResult(outcome=RouteOutcome.DROPPED_ANONYMOUS)

        sender = connection.identity.user_id
        try:
            message = await asyncio.wait_for(
                self.store.append(sender, inbound.recipient, inbound.text),
                timeout=self.store_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Timed out storing message from {sender} to {inbound.recipient}")
            return RouteResult(outcome=RouteOutcome.FAILED)
        except Exception as e:
            logger.error(f"Failed to store message from {sender} to {inbound.recipient}: {e}")
            return RouteResult(outcome=RouteOutcome.FAILED)

        delivered = await self.deliver(message)
        return RouteResult(outcome=RouteOutcome.DELIVERED, message=message, delivered_to=delivered)

    async def deliver(self, message: Message) -> int:
        """Send a stored message to every live connection of its recipient, never back to the sender."""
        connections = await self.registry.snapshot()
        targets = [
            c for c in connections
            if c.user_id == message.recipient and c.user_id != message.sender
        ]
        if not targets:
            logger.debug(f"Recipient {message.recipient} has no live connection for message {message.id}")
            return 0

        payload = DeliveredMessage.from_message(message).model_dump_json()
        results = await asyncio.gather(
            *(connection.send_text(payload) for connection in targets),
            return_exceptions=True,
        )

        delivered = 0
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Failed to deliver message {message.id} to {connection!r}: {result}")
            else:
                delivered += 1
        return delivered
