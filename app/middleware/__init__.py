"""Middleware package."""

import time
from fastapi import Request

from .auth import get_current_identity

__all__ = [
    "get_current_identity",
    "timing_middleware"
]


async def timing_middleware(request: Request, call_next):
    """Report request handling time in a response header."""
    start = time.time()
    response = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    response.headers["X-Process-Time-ms"] = str(duration_ms)
    return response
