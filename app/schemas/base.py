"""
Response envelope shared by the HTTP routes.
"""

from typing import Any, Dict, Optional


class BaseResponse:
    """Builds `{success, message, ...}` bodies for HTTP responses."""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": True, "message": message}
        if data is not None:
            body["data"] = data
        return body

    @staticmethod
    def error(message: str, status_code: int = 400, details: Optional[Any] = None) -> Dict[str, Any]:
        """Failure body; `details` is only included when given."""
        body: Dict[str, Any] = {"success": False, "message": message, "status_code": status_code}
        if details is not None:
            body["details"] = details
        return body
