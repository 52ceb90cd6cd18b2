"""SQLAlchemy models for confessions and their tags."""

from __future__ import annotations

import math
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
from sqlalchemy.orm import Mapped, mapped_column, relationship

from confession_board.db.session import Base
from confession_board.db.time import as_utc, utcnow

from .constants import (
    CATEGORY_OTHER,
    CONFESSION_CATEGORIES,
    CONTENT_STATUSES,
    STATUS_APPROVED,
    sql_in,
)


def _percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return math.floor(part * 100 / total + 0.5)


class Confession(Base):
    """A short text judged by the community with heaven/hell votes.

    The vote totals and comment count are caches recomputed from the vote and
    comment tables; they are never authoritative on their own.
    """

    __tablename__ = "confessions"
    __table_args__ = (
        CheckConstraint(sql_in("status", CONTENT_STATUSES), name="ck_confessions_status"),
        CheckConstraint(sql_in("category", CONFESSION_CATEGORIES), name="ck_confessions_category"),
        CheckConstraint(
            "heaven_votes >= 0 AND hell_votes >= 0 AND comments_count >= 0 "
            "AND views_count >= 0 AND shares_count >= 0",
            name="ck_confessions_counters",
        ),
        Index("ix_confessions_status_created", "status", "created_at"),
        Index("ix_confessions_category_created", "category", "created_at"),
        Index("ix_confessions_featured", "featured", "featured_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # NULL author means the confession is anonymous.
    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default=CATEGORY_OTHER)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_APPROVED)

    # Denormalized counters.
    heaven_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hell_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shares_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

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

    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # NULL means the confession never expires.
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
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

    tag_rows: Mapped[list[ConfessionTag]] = relationship(
        "ConfessionTag",
        cascade="all, delete-orphan",
        order_by="ConfessionTag.position",
        lazy="selectin",
    )

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]

    @property
    def votes(self) -> dict[str, int]:
        return {"heaven": self.heaven_votes, "hell": self.hell_votes}

    @property
    def total_votes(self) -> int:
        return self.heaven_votes + self.hell_votes

    @property
    def heaven_percentage(self) -> int:
        return _percentage(self.heaven_votes, self.total_votes)

    @property
    def hell_percentage(self) -> int:
        return _percentage(self.hell_votes, self.total_votes)

    def is_expired_at(self, now: datetime) -> bool:
        """Return True if the confession expired before ``now``."""
        return self.expires_at is not None and as_utc(self.expires_at) < now

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utcnow())


class ConfessionTag(Base):
    """Normalized tag attached to a confession."""

    __tablename__ = "confession_tags"

    confession_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("confessions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(20), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
