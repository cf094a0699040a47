"""
Account service: username/password accounts that back the session cookie.
"""

import logging
from datetime import datetime
from typing import Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from app.db.database import get_database
from app.models.user import UserInDB
from app.schemas.auth import UserRegistration
from app.services.security import security_service

logger = logging.getLogger(__name__)


class UserService:
    """Registers accounts and checks credentials against the `users` collection."""

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None):
        self.db = db

    @property
    def users(self):
        if self.db is None:
            self.db = get_database()
        return self.db.users

    async def create_user(self, user_data: UserRegistration) -> UserInDB:
        """Store a new account. Raises ValueError if the username is taken."""
        if await self.get_user_by_username(user_data.username) is not None:
            raise ValueError("User with this username already exists")

        user = UserInDB(
            username=user_data.username,
            hashed_password=security_service.hash_password(user_data.password),
        )
        try:
            # the unique index settles concurrent registrations
            result = await self.users.insert_one(user.model_dump(by_alias=True))
        except DuplicateKeyError:
            raise ValueError("User with this username already exists")

        user.id = result.inserted_id
        logger.info(f"Registered user {user.username} ({user.id})")
        return user

    async def get_user_by_username(self, username: str) -> Optional[UserInDB]:
        doc = await self.users.find_one({"username": username})
        return UserInDB(**doc) if doc else None

    async def authenticate_user(self, username: str, password: str) -> Optional[UserInDB]:
        """Return the account if the password matches, else None."""
        user = await self.get_user_by_username(username)
        if user is None or not security_service.verify_password(password, user.hashed_password):
            logger.info(f"Failed login for {username}")
            return None

        await self.update_last_login(user.id)
        return user

    async def update_last_login(self, user_id: ObjectId) -> None:
        await self.users.update_one({"_id": user_id}, {"$set": {"last_login": datetime.utcnow()}})


# Global user service instance
user_service = UserService()
