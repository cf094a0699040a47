"""
MongoDB implementation of the MessageStore.
"""

import logging
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.database import get_database
from app.models.message import Message
from app.repositories.base import MessageStore, MonotonicClock

logger = logging.getLogger(__name__)


class MongoMessageStore(MessageStore):
    """Message store backed by the `messages` collection."""

    def __init__(self, db: AsyncIOMotorDatabase = None, clock: MonotonicClock = None):
        super().__init__(clock)
        self.db = db
        self._messages_collection = None

    @property
    def messages_collection(self):
        """Get messages collection with lazy loading."""
        if self._messages_collection is None:
            if self.db is None:
                self.db = get_database()
            self._messages_collection = self.db.messages
        return self._messages_collection

    async def append(self, sender: str, recipient: str, text: str) -> Message:
        """Insert a message and return it with its id and created_at."""
        try:
            created_at = self.clock.now()
            document = {
                "sender": sender,
                "recipient": recipient,
                "text": text,
                "created_at": created_at,
            }
            result = await self.messages_collection.insert_one(document)
            message = Message(
                id=str(result.inserted_id),
                sender=sender,
                recipient=recipient,
                text=text,
                created_at=created_at,
            )
            logger.debug(f"Stored message {message.id} from {sender} to {recipient}")
            return message
        except Exception as e:
            logger.error(f"Error storing message from {sender} to {recipient}: {e}")
            raise

    async def query(self, participant_a: str, participant_b: str, limit: int = None) -> List[Message]:
        """Get the conversation between two users ordered by created_at."""
        try:
            query = self.conversation_filter(participant_a, participant_b)
            if limit:
                # Take the newest `limit` messages, then restore chronological order
                cursor = self.messages_collection.find(query).sort([("created_at", -1), ("_id", -1)]).limit(limit)
            else:
                cursor = self.messages_collection.find(query).sort([("created_at", 1), ("_id", 1)])

            messages = []
            async for doc in cursor:
                messages.append(Message(
                    id=str(doc["_id"]),
                    sender=doc["sender"],
                    recipient=doc["recipient"],
                    text=doc["text"],
                    created_at=doc["created_at"],
                ))

            if limit:
                messages.reverse()

            logger.info(f"Retrieved {len(messages)} messages between {participant_a} and {participant_b}")
            return messages
        except Exception as e:
            logger.error(f"Error querying messages between {participant_a} and {participant_b}: {e}")
            raise
