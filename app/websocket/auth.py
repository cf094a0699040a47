"""
WebSocket authentication utilities.
"""

import logging
from typing import Callable, Mapping, Optional, Union
from starlette.requests import cookie_parser

from app.core.config import settings
from app.models.presence import AuthResult, Identity, Unauthenticated
from app.services.security import security_service

logger = logging.getLogger(__name__)


class Authenticator:
    """Resolves a connection's identity from the session cookie in its handshake.

    Resolution never raises and never rejects the connection: every failure
    comes back as an ``Unauthenticated`` value and the caller registers the
    connection anonymously.
    """

    def __init__(
        self,
        verify: Optional[Callable[[str], AuthResult]] = None,
        cookie_name: Optional[str] = None,
    ):
        self.verify = verify or security_service.verify_session_token
        self.cookie_name = cookie_name or settings.SESSION_COOKIE_NAME

    def extract_token(self, handshake_metadata: Union[Mapping[str, str], str, None]) -> Optional[str]:
        """Pull the session token out of parsed cookies or a raw Cookie header."""
        if not handshake_metadata:
            return None
        if isinstance(handshake_metadata, str):
            handshake_metadata = cookie_parser(handshake_metadata)
        return handshake_metadata.get(self.cookie_name) or None

    def resolve(self, handshake_metadata: Union[Mapping[str, str], str, None]) -> AuthResult:
        token = self.extract_token(handshake_metadata)
        if not token:
            return Unauthenticated(reason="missing_token")

        try:
            result = self.verify(token)
        except Exception as e:
            logger.error(f"WebSocket token verification error: {e}")
            return Unauthenticated(reason="invalid_signature")

        if isinstance(result, Identity):
            logger.info(f"WebSocket authenticated for user {result.user_id}")
        else:
            logger.warning(f"WebSocket authentication failed: {result.reason}")
        return result
