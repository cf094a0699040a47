"""Services package."""

from .security import security_service
from .user_service import user_service

__all__ = ["security_service", "user_service"]
