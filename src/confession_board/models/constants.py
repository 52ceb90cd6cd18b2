"""Enumerations shared by models, schemas and services."""

from typing import Final

STATUS_PENDING: Final = "pending"
STATUS_APPROVED: Final = "approved"
STATUS_REJECTED: Final = "rejected"
STATUS_HIDDEN: Final = "hidden"
CONTENT_STATUSES: Final = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_HIDDEN)

CATEGORY_OTHER: Final = "other"
CONFESSION_CATEGORIES: Final = ("personal", "work", "relationship", "family", "moral", CATEGORY_OTHER)

VOTE_HEAVEN: Final = "heaven"
VOTE_HELL: Final = "hell"
VOTE_TYPES: Final = (VOTE_HEAVEN, VOTE_HELL)

ROLE_USER: Final = "user"
ROLE_MODERATOR: Final = "moderator"
ROLE_ADMIN: Final = "admin"
USER_ROLES: Final = (ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN)

USER_ACTIVE: Final = "active"
USER_SUSPENDED: Final = "suspended"
USER_BANNED: Final = "banned"
USER_STATUSES: Final = (USER_ACTIVE, USER_SUSPENDED, USER_BANNED)

REPORT_REASONS: Final = ("spam", "inappropriate", "harassment", "fake", "other")


def sql_in(column: str, values: tuple[str, ...]) -> str:
    """Render a CHECK constraint body restricting ``column`` to ``values``."""
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"
