"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .comments import router as comments_router
from .confessions import router as confessions_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "comments_router",
    "confessions_router",
    "users_router",
]
