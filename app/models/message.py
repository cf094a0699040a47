"""
Direct message model shared by the message stores.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class Message(BaseModel):
    """A persisted point-to-point message. Immutable once the store returns it."""
    id: str = Field(...)
    sender: str = Field(...)
    recipient: str = Field(...)
    text: str = Field(...)
    created_at: datetime = Field(...)

    class Config:
        frozen = True
