"""
Base repository interfaces and implementations.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List

from app.models.message import Message


class MonotonicClock:
    """Issues creation timestamps that never go backwards.

    Timestamps are truncated to milliseconds, the precision MongoDB stores,
    and bumped by one millisecond when the wall clock has not advanced past
    the previous value.
    """

    _STEP = timedelta(milliseconds=1)

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: datetime = datetime.min

    def now(self) -> datetime:
        current = datetime.utcnow()
        current = current.replace(microsecond=current.microsecond - current.microsecond % 1000)
        with self._lock:
            if current <= self._last:
                current = self._last + self._STEP
            self._last = current
            return current


class MessageStore(ABC):
    """Abstract interface for direct message persistence."""

    def __init__(self, clock: MonotonicClock = None) -> None:
        self.clock = clock or MonotonicClock()

    @abstractmethod
    async def append(self, sender: str, recipient: str, text: str) -> Message:
        """
        Persist a message.

        Args:
            sender: User ID of the author
            recipient: User ID of the addressee
            text: Message body

        Returns:
            The stored message with its assigned id and created_at
        """
        pass

    @abstractmethod
    async def query(self, participant_a: str, participant_b: str, limit: int = None) -> List[Message]:
        """
        Get the conversation between two users in either direction.

        Args:
            participant_a: User ID of one participant
            participant_b: User ID of the other participant
            limit: Optional cap on the number of most recent messages returned

        Returns:
            Messages sorted ascending by created_at
        """
        pass

    @staticmethod
    def conversation_filter(participant_a: str, participant_b: str) -> dict:
        """Match messages exchanged between two users in either direction."""
        return {
            "$or": [
                {"sender": participant_a, "recipient": participant_b},
                {"sender": participant_b, "recipient": participant_a},
            ]
        }
