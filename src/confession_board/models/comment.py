"""SQLAlchemy model for threaded comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from confession_board.db.session import Base
from confession_board.db.time import utcnow

from .constants import CONTENT_STATUSES, STATUS_APPROVED, sql_in


class Comment(Base):
    """Comment on a confession, optionally replying to another comment."""

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(sql_in("status", CONTENT_STATUSES), name="ck_comments_status"),
        CheckConstraint(
            "likes >= 0 AND dislikes >= 0 AND replies_count >= 0",
            name="ck_comments_counters",
        ),
        Index("ix_comments_confession_created", "confession_id", "created_at"),
        Index("ix_comments_parent_created", "parent_comment_id", "created_at"),
        Index("ix_comments_status_created", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    confession_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("confessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Top-level comments have parent_comment_id = NULL.
    parent_comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_APPROVED)

    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dislikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    replies_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Moderation block.
    is_reported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    moderated_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    moderation_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)

    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    edit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @property
    def is_reply(self) -> bool:
        return self.parent_comment_id is not None

    @property
    def net_likes(self) -> int:
        return self.likes - self.dislikes

    @property
    def is_edited(self) -> bool:
        return self.edit_count > 0
