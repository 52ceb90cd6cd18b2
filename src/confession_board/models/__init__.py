"""SQLAlchemy models for the confession board."""

from .comment import Comment
from .confession import Confession, ConfessionTag
from .user import User
from .vote import Vote

__all__ = [
    "Comment",
    "Confession", "ConfessionTag",
    "User",
    "Vote",
]
