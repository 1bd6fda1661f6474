"""API Routers."""

from .friends import router as friends_router
from .lists import router as lists_router

__all__ = [
    "friends_router",
    "lists_router",
]
