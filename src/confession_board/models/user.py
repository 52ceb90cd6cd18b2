"""SQLAlchemy model for board members.

Authentication lives outside this service; the table only carries what the
board needs: role, account status and activity statistics.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from confession_board.db.session import Base
from confession_board.db.time import utcnow

from .constants import (
    ROLE_ADMIN,
    ROLE_MODERATOR,
    ROLE_USER,
    USER_ACTIVE,
    USER_ROLES,
    USER_STATUSES,
    sql_in,
)


class User(Base):
    """Registered member of the board."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(sql_in("role", USER_ROLES), name="ck_users_role"),
        CheckConstraint(sql_in("status", USER_STATUSES), name="ck_users_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_USER)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=USER_ACTIVE)

    # Activity statistics maintained by the service layer.
    confessions_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    votes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=10, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @property
    def is_moderator(self) -> bool:
        """Return True for moderators and administrators."""
        return self.role in (ROLE_MODERATOR, ROLE_ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == USER_ACTIVE
