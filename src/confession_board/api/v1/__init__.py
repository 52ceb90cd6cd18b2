"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    comments_router,
    confessions_router,
    users_router,
)

__all__ = [
    "admin_router",
    "comments_router",
    "confessions_router",
    "users_router",
]
