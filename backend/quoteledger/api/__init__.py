"""API routes."""

from .quotes import router as quotes_router
from .versions import router as versions_router

__all__ = [
    "quotes_router",
    "versions_router",
]
