"""
Authentication API endpoints.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.core.config import settings
from app.models.presence import Identity
from app.models.user import UserInDB
from app.schemas.auth import UserRegistration, UserLogin
from app.schemas.base import BaseResponse
from app.schemas.token import ProfileResponse
from app.services.security import security_service
from app.services.user_service import user_service
from app.middleware.auth import get_current_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_session_cookie(response: Response, user: UserInDB) -> ProfileResponse:
    """Issue a session token for the user and attach it as the session cookie."""
    token = security_service.create_session_token(str(user.id), user.username)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )
    return ProfileResponse(user_id=str(user.id), username=user.username)


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a new account and start a session"
)
async def register(user_data: UserRegistration, response: Response):
    """Register a new user."""
    try:
        user = await user_service.create_user(user_data)
        profile = _set_session_cookie(response, user)
        return BaseResponse.success(profile.model_dump(by_alias=True), "User registered successfully")

    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post(
    "/login",
    response_model=dict,
    summary="User login",
    description="Authenticate with username and password and start a session"
)
async def login(login_data: UserLogin, response: Response):
    """Authenticate user and set the session cookie."""
    try:
        user = await user_service.authenticate_user(login_data.username, login_data.password)
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )

    profile = _set_session_cookie(response, user)
    return BaseResponse.success(profile.model_dump(by_alias=True), "Login successful")


@router.post(
    "/logout",
    response_model=dict,
    summary="User logout",
    description="End the session by clearing the session cookie"
)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )
    return BaseResponse.success(message="Logout successful")


@router.get(
    "/profile",
    response_model=ProfileResponse,
    response_model_by_alias=True,
    summary="Current session identity",
    description="Return the identity carried by the session token"
)
async def profile(identity: Identity = Depends(get_current_identity)):
    """Return the caller's identity."""
    return ProfileResponse(user_id=identity.user_id, username=identity.username)
