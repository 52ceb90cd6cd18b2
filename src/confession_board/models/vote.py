"""Models capturing heaven/hell votes on confessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from confession_board.db.session import Base
from confession_board.db.time import utcnow

from .constants import VOTE_TYPES, sql_in


class Vote(Base):
    """Per-user judgement on a confession.

    The vote ledger is the source of truth for confession vote totals.
    """

    __tablename__ = "votes"
    __table_args__ = (
        # The store, not application logic, guarantees one vote per pair.
        UniqueConstraint("user_id", "confession_id", name="uq_votes_user_confession"),
        CheckConstraint(sql_in("type", VOTE_TYPES), name="ck_votes_type"),
        Index("ix_votes_confession_type", "confession_id", "type"),
        Index("ix_votes_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    confession_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("confessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(8), nullable=False)

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
