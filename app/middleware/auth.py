"""
Authentication dependencies for FastAPI.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings
from app.models.presence import Identity, Unauthenticated
from app.services.security import security_service

logger = logging.getLogger(__name__)

# Bearer tokens are accepted as a fallback to the session cookie
security = HTTPBearer(auto_error=False)

_FAILURE_DETAILS = {
    "missing_token": "Not authenticated",
    "expired": "Token has expired",
    "invalid_signature": "Could not validate credentials",
    "malformed": "Could not validate credentials",
}


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Identity:
    """
    Dependency to get the identity carried by the caller's session token.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials is not None:
        token = credentials.credentials

    result = security_service.verify_session_token(token) if token else Unauthenticated(reason="missing_token")
    if isinstance(result, Unauthenticated):
        logger.debug(f"HTTP authentication failed: {result.reason}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_FAILURE_DETAILS.get(result.reason, "Could not validate credentials"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result
