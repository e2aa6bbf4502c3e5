"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "comments_router",
    "notifications_router",
    "posts_router",
    "users_router",
]
