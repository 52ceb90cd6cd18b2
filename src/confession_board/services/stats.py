"""User activity statistics and board-wide aggregates."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from confession_board.core.errors import NotFound, ValidationError
from confession_board.models import Comment, Confession, User, Vote
from confession_board.models.constants import (
    CONTENT_STATUSES,
    USER_ACTIVE,
    VOTE_HEAVEN,
    VOTE_HELL,
)

from .pagination import Page, paginate_query

logger = logging.getLogger(__name__)

LEADERBOARD_COLUMNS = {
    "reputation": User.reputation,
    "confessions": User.confessions_count,
    "votes": User.votes_count,
    "comments": User.comments_count,
}


def _bump(db: Session, user_id: int, column: str) -> bool:
    """Atomically add one to a user statistic; failures are logged only."""
    try:
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values({column: getattr(User, column) + 1})
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to increment %s for user %s", column, user_id)
        return False
    return True


def record_vote_added(db: Session, user_id: int) -> bool:
    return _bump(db, user_id, "votes_count")


def record_confession_created(db: Session, user_id: int) -> bool:
    return _bump(db, user_id, "confessions_count")


def record_comment_created(db: Session, user_id: int) -> bool:
    return _bump(db, user_id, "comments_count")


def user_stats(db: Session, user_id: int) -> dict[str, int]:
    """Return activity counts for a user recomputed from the records.

    Raises:
        NotFound: If the user does not exist.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    def _count(model: Any, column: Any) -> int:
        return db.execute(
            select(func.count()).select_from(model).where(column == user_id)
        ).scalar_one()

    return {
        "confessions_count": _count(Confession, Confession.author_id),
        "votes_count": _count(Vote, Vote.user_id),
        "comments_count": _count(Comment, Comment.author_id),
        "reputation": user.reputation,
    }


def _status_breakdown(db: Session, model: Any) -> dict[str, int]:
    rows = db.execute(select(model.status, func.count()).group_by(model.status)).all()
    breakdown = {status: 0 for status in CONTENT_STATUSES}
    for status, total in rows:
        breakdown[status] = total
    breakdown["total"] = sum(total for _, total in rows)
    return breakdown


def board_stats(db: Session) -> dict[str, dict[str, int]]:
    """Aggregate board-wide counts for the moderation dashboard."""
    confessions = _status_breakdown(db, Confession)
    totals = db.execute(
        select(
            func.coalesce(func.sum(Confession.heaven_votes + Confession.hell_votes), 0),
            func.coalesce(func.sum(Confession.comments_count), 0),
            func.coalesce(func.sum(Confession.views_count), 0),
        )
    ).one()
    confessions.update(
        total_votes=int(totals[0]),
        total_comments=int(totals[1]),
        total_views=int(totals[2]),
    )

    vote_row = db.execute(
        select(
            func.count(Vote.id),
            func.coalesce(func.sum(case((Vote.type == VOTE_HEAVEN, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Vote.type == VOTE_HELL, 1), else_=0)), 0),
        )
    ).one()

    user_row = db.execute(
        select(
            func.count(User.id),
            func.coalesce(func.sum(case((User.status == USER_ACTIVE, 1), else_=0)), 0),
        )
    ).one()

    return {
        "users": {"total": int(user_row[0]), "active": int(user_row[1])},
        "confessions": confessions,
        "votes": {
            "total": int(vote_row[0]),
            "heaven": int(vote_row[1]),
            "hell": int(vote_row[2]),
        },
        "comments": _status_breakdown(db, Comment),
    }


def leaderboard(db: Session, kind: str = "reputation", limit: int = 10) -> list[User]:
    """Return active users ranked by one statistic.

    Raises:
        ValidationError: If ``kind`` or ``limit`` is not supported.
    """
    column = LEADERBOARD_COLUMNS.get(kind)
    if column is None:
        raise ValidationError(f"Unknown leaderboard type: {kind}")
    if limit < 1 or limit > 100:
        raise ValidationError("limit must be between 1 and 100")
    stmt = (
        select(User)
        .where(User.status == USER_ACTIVE)
        .order_by(column.desc(), User.id.asc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())


def vote_history(db: Session, user_id: int, page: int, page_size: int) -> Page[Vote]:
    """Return a user's votes, newest first."""
    stmt = (
        select(Vote)
        .where(Vote.user_id == user_id)
        .order_by(Vote.created_at.desc(), Vote.id.desc())
    )
    return paginate_query(db, stmt, page, page_size)
