"""
Dependency injection setup for the application.
"""

from app.core.config import settings
from app.repositories.base import MessageStore
from app.repositories.memory import InMemoryMessageStore
from app.repositories.message import MongoMessageStore


# Message store instance (singleton)
_message_store = None


def get_message_store() -> MessageStore:
    """Get message store instance.

    Uses MongoDB unless USE_IN_MEMORY_STORE is set, in which case messages
    live in process memory for development.
    """
    global _message_store
    if _message_store is None:
        if settings.USE_IN_MEMORY_STORE:
            _message_store = InMemoryMessageStore()
        else:
            _message_store = MongoMessageStore()
    return _message_store
