"""Models package."""

from .user import UserInDB, PyObjectId
from .message import Message
from .presence import Identity, Unauthenticated, AuthResult, LivenessState, RosterEntry

__all__ = [
    "UserInDB", "PyObjectId",
    "Message",
    "Identity", "Unauthenticated", "AuthResult", "LivenessState", "RosterEntry"
]
