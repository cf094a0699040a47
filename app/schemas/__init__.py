"""Schemas package."""

from .auth import (
    UserRegistration,
    UserLogin
)
from .token import (
    ProfileResponse
)
from .message import (
    InboundMessage,
    ControlFrame,
    DeliveredMessage,
    RosterFrame,
    ErrorFrame,
    MessageResponse,
    MessageHistoryResponse
)

__all__ = [
    # Auth schemas
    "UserRegistration",
    "UserLogin",
    # Token schemas
    "ProfileResponse",
    # Message and frame schemas
    "InboundMessage",
    "ControlFrame",
    "DeliveredMessage",
    "RosterFrame",
    "ErrorFrame",
    "MessageResponse",
    "MessageHistoryResponse"
]
