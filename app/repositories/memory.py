"""
In-memory implementation of the MessageStore for development/testing.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import List

from app.models.message import Message
from app.repositories.base import MessageStore, MonotonicClock


class InMemoryMessageStore(MessageStore):
    """Keeps messages in process memory. Not suitable for production.

    Messages are lost on restart; ids are random hex strings.
    """

    def __init__(self, clock: MonotonicClock = None) -> None:
        super().__init__(clock)
        self._messages: List[Message] = []
        self._lock = asyncio.Lock()

    async def append(self, sender: str, recipient: str, text: str) -> Message:
        async with self._lock:
            message = Message(
                id=uuid.uuid4().hex,
                sender=sender,
                recipient=recipient,
                text=text,
                created_at=self.clock.now(),
            )
            self._messages.append(message)
            return message

    async def query(self, participant_a: str, participant_b: str, limit: int = None) -> List[Message]:
        directions = ((participant_a, participant_b), (participant_b, participant_a))
        async with self._lock:
            found = [m for m in self._messages if (m.sender, m.recipient) in directions]
        found.sort(key=lambda m: m.created_at)
        if limit:
            found = found[-limit:]
        return found

    def __len__(self) -> int:
        return len(self._messages)
