"""
Session token related schemas.
"""

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    """Schema for the identity carried by the caller's session token."""

    user_id: str = Field(..., alias="userId", description="User ID")
    username: str = Field(..., description="Username")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "userId": "507f1f77bcf86cd799439011",
                "username": "alice"
            }
        }
