"""
Authentication-related Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings


class UserRegistration(BaseModel):
    """Schema for user registration request."""

    username: str = Field(..., min_length=3, max_length=32, description="Username")
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH, description="User password")

    @field_validator("username")
    def validate_username(cls, v):
        """Usernames are trimmed and must not contain whitespace."""
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("Username must not contain whitespace")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice",
                "password": "SecurePass123!"
            }
        }


class UserLogin(BaseModel):
    """Schema for user login request."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="User password")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice",
                "password": "SecurePass123!"
            }
        }
