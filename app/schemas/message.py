"""
WebSocket frame and message history schemas.
"""

from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel, Field, field_validator

from app.models.message import Message
from app.models.presence import RosterEntry


class InboundMessage(BaseModel):
    """Application frame sent by a client to address another identity."""
    recipient: str = Field(..., min_length=1)
    text: str = Field(...)

    @field_validator("recipient", mode="before")
    def recipient_as_string(cls, v):
        """User ids may arrive as JSON numbers; bools and other types stay invalid."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ControlFrame(BaseModel):
    """Heartbeat control frame (`ping` outbound, `pong` inbound)."""
    type: Literal["ping", "pong"]


class DeliveredMessage(BaseModel):
    """Outbound frame carrying a persisted message to its recipient."""
    text: str
    sender: str
    recipient: str
    id: str

    @classmethod
    def from_message(cls, message: Message) -> "DeliveredMessage":
        return cls(
            text=message.text,
            sender=message.sender,
            recipient=message.recipient,
            id=message.id,
        )


class RosterFrame(BaseModel):
    """Outbound frame listing every identified live connection."""
    online: List[RosterEntry] = Field(default_factory=list)


class ErrorFrame(BaseModel):
    """Outbound frame reporting a failed send to its sender."""
    error: str


class MessageResponse(BaseModel):
    """Response schema for a stored message."""
    id: str
    sender: str
    recipient: str
    text: str
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            sender=message.sender,
            recipient=message.recipient,
            text=message.text,
            created_at=message.created_at,
        )


class MessageHistoryResponse(BaseModel):
    """Response schema for a conversation history query."""
    messages: List[MessageResponse]
    total: int
