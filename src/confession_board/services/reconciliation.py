"""Counter reconciliation for confessions and comments.

Vote totals, comment counts and reply counts are caches over the vote and
comment tables. Each ``reconcile_*`` function recomputes one cache from its
source records and writes it back; running one twice in a row gives the same
result, so concurrent or redundant calls converge without locking.

The ``after_*`` triggers run reconciliation after a write has already been
committed. Failures there are logged and swallowed so they never undo the
write that caused them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from confession_board.core.errors import BoardError, NotFound
from confession_board.models import Comment, Confession, Vote
from confession_board.models.constants import STATUS_APPROVED, VOTE_HEAVEN, VOTE_HELL

logger = logging.getLogger(__name__)


def count_votes(db: Session, confession_id: int) -> dict[str, int]:
    """Return the number of heaven and hell votes recorded for a confession."""
    rows = db.execute(
        select(Vote.type, func.count())
        .where(Vote.confession_id == confession_id)
        .group_by(Vote.type)
    ).all()
    counts = {VOTE_HEAVEN: 0, VOTE_HELL: 0}
    for vote_type, total in rows:
        counts[vote_type] = total
    return counts


def count_approved_comments(db: Session, confession_id: int) -> int:
    return db.execute(
        select(func.count())
        .select_from(Comment)
        .where(Comment.confession_id == confession_id, Comment.status == STATUS_APPROVED)
    ).scalar_one()


def count_approved_replies(db: Session, comment_id: int) -> int:
    return db.execute(
        select(func.count())
        .select_from(Comment)
        .where(Comment.parent_comment_id == comment_id, Comment.status == STATUS_APPROVED)
    ).scalar_one()


def reconcile_confession_votes(db: Session, confession_id: int) -> dict[str, int]:
    """Recompute ``heaven_votes`` and ``hell_votes`` from the vote ledger.

    Both counters are written by one UPDATE statement.

    Returns:
        The recomputed counts keyed by vote type.

    Raises:
        NotFound: If the confession no longer exists.
    """
    db.flush()
    counts = count_votes(db, confession_id)
    result = db.execute(
        update(Confession)
        .where(Confession.id == confession_id)
        .values(heaven_votes=counts[VOTE_HEAVEN], hell_votes=counts[VOTE_HELL])
    )
    if result.rowcount == 0:
        raise NotFound(f"Confession {confession_id} not found")
    return counts


def reconcile_comment_count(db: Session, confession_id: int) -> int:
    """Recompute ``comments_count`` as the number of approved comments.

    Raises:
        NotFound: If the confession no longer exists.
    """
    db.flush()
    total = count_approved_comments(db, confession_id)
    result = db.execute(
        update(Confession)
        .where(Confession.id == confession_id)
        .values(comments_count=total)
    )
    if result.rowcount == 0:
        raise NotFound(f"Confession {confession_id} not found")
    return total


def reconcile_reply_count(db: Session, parent_comment_id: int) -> int:
    """Recompute ``replies_count`` as the number of approved direct replies.

    Raises:
        NotFound: If the comment no longer exists.
    """
    db.flush()
    total = count_approved_replies(db, parent_comment_id)
    result = db.execute(
        update(Comment)
        .where(Comment.id == parent_comment_id)
        .values(replies_count=total)
    )
    if result.rowcount == 0:
        raise NotFound(f"Comment {parent_comment_id} not found")
    return total


def _run_safely(db: Session, label: str, step: Callable[[], object]) -> bool:
    try:
        step()
        db.commit()
    except NotFound as exc:
        db.rollback()
        logger.warning("Skipped %s reconciliation: %s", label, exc.detail)
        return False
    except (SQLAlchemyError, BoardError):
        db.rollback()
        logger.exception("Failed to reconcile %s", label)
        return False
    return True


def after_vote_write(db: Session, confession_id: int) -> bool:
    """Reconcile vote totals after a vote was created, changed or removed.

    Returns:
        True if the counters were refreshed, False if the failure was swallowed.
    """
    return _run_safely(
        db,
        f"votes for confession {confession_id}",
        lambda: reconcile_confession_votes(db, confession_id),
    )


def after_comment_write(
    db: Session,
    confession_id: int,
    parent_comment_id: int | None = None,
) -> bool:
    """Reconcile comment and reply counts after a comment write.

    The parent's reply count is refreshed even when the confession step fails.
    """
    refreshed = _run_safely(
        db,
        f"comment count for confession {confession_id}",
        lambda: reconcile_comment_count(db, confession_id),
    )
    if parent_comment_id is not None:
        refreshed = _run_safely(
            db,
            f"reply count for comment {parent_comment_id}",
            lambda: reconcile_reply_count(db, parent_comment_id),
        ) and refreshed
    return refreshed
