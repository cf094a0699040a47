"""
Security services for password hashing and session token management.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
import logging

from app.core.config import settings
from app.models.presence import AuthResult, Identity, Unauthenticated

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class SecurityService:
    """Service for handling security operations."""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_session_token(user_id: str, username: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed session token carrying the user's identity."""
        now = datetime.now(timezone.utc)
        if expires_delta:
            expire = now + expires_delta
        else:
            expire = now + timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES)

        to_encode: Dict[str, Any] = {
            "userId": str(user_id),
            "username": username,
            "exp": expire,
            "iat": now,
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify_session_token(token: str) -> AuthResult:
        """Verify a session token and return the identity it carries or the failure reason."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except ExpiredSignatureError:
            return Unauthenticated(reason="expired")
        except JWTError as e:
            logger.debug(f"Session token rejected: {e}")
            return Unauthenticated(reason="invalid_signature")

        user_id = payload.get("userId")
        username = payload.get("username")
        if not user_id or not username or payload.get("exp") is None:
            return Unauthenticated(reason="malformed")
        return Identity(user_id=str(user_id), username=str(username))


# Global security service instance
security_service = SecurityService()
