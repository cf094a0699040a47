"""
Presence models: resolved identities, authentication failures and connection liveness.
"""

from enum import Enum
from typing import Union
from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Identity resolved from a verified session token."""
    user_id: str = Field(..., alias="userId")
    username: str = Field(...)

    class Config:
        frozen = True
        populate_by_name = True


class Unauthenticated(BaseModel):
    """Failure value returned when a session token cannot be resolved."""
    reason: str = Field(...)  # missing_token, expired, invalid_signature, malformed

    class Config:
        frozen = True


AuthResult = Union[Identity, Unauthenticated]


class LivenessState(str, Enum):
    """Heartbeat state of a single connection."""
    ALIVE = "alive"
    PROBING = "probing"
    DEAD = "dead"


class RosterEntry(BaseModel):
    """One identified connection as shown in the online list."""
    user_id: str = Field(..., alias="userId")
    username: str

    class Config:
        populate_by_name = True
