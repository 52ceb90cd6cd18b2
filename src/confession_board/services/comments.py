"""Comment tree: creation, edits, reactions, listings and cascading deletes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Final

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from confession_board.core.errors import Forbidden, ValidationError
from confession_board.db.time import utcnow
from confession_board.models import Comment, User
from confession_board.models.constants import STATUS_APPROVED

from . import reconciliation, stats
from .confessions import validate_report
from .guards import get_comment_or_404, get_confession_or_404, get_open_confession
from .pagination import Page, paginate_query, resolve_page

logger = logging.getLogger(__name__)

COMMENT_MIN_LENGTH: Final = 1
COMMENT_MAX_LENGTH: Final = 500

COMMENT_SORTS: Final = ("latest", "oldest", "likes")
REACTIONS: Final = {"like": "likes", "dislike": "dislikes"}


def _validate_content(content: str | None) -> str:
    text = (content or "").strip()
    if not COMMENT_MIN_LENGTH <= len(text) <= COMMENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment must be between {COMMENT_MIN_LENGTH} and {COMMENT_MAX_LENGTH} characters"
        )
    return text


def create_comment(
    db: Session,
    *,
    author_id: int,
    confession_id: int,
    content: str,
    parent_comment_id: int | None = None,
    now: datetime | None = None,
) -> Comment:
    """Attach a comment, or a reply to another comment, to a confession.

    Raises:
        ValidationError: If the content length is out of range or the parent
            belongs to a different confession.
        NotFound: If the confession or the parent comment does not exist.
        Forbidden: If the confession is not approved.
        Gone: If the confession has expired.
    """
    text = _validate_content(content)
    now = now or utcnow()
    get_open_confession(db, confession_id, now)
    if parent_comment_id is not None:
        parent = get_comment_or_404(db, parent_comment_id)
        if parent.confession_id != confession_id:
            raise ValidationError("Parent comment belongs to a different confession")

    comment = Comment(
        content=text,
        author_id=author_id,
        confession_id=confession_id,
        parent_comment_id=parent_comment_id,
        status=STATUS_APPROVED,
        created_at=now,
        updated_at=now,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    if comment.status == STATUS_APPROVED:
        reconciliation.after_comment_write(db, confession_id, parent_comment_id)
        db.refresh(comment)
    stats.record_comment_created(db, author_id)
    return comment


def edit_comment(
    db: Session,
    comment_id: int,
    *,
    actor_id: int,
    content: str,
    now: datetime | None = None,
) -> Comment:
    """Replace a comment's text, recording the edit.

    Raises:
        NotFound: If the comment does not exist.
        Forbidden: If the actor did not write the comment.
        ValidationError: If the new content length is out of range.
    """
    comment = get_comment_or_404(db, comment_id)
    if comment.author_id != actor_id:
        raise Forbidden("You can only edit your own comments")
    comment.content = _validate_content(content)
    comment.edited_at = now or utcnow()
    comment.edit_count += 1
    db.commit()
    db.refresh(comment)
    return comment


def collect_descendants(db: Session, comment_id: int) -> list[int]:
    """Return ids of every reply below ``comment_id``, parents before children."""
    found: list[int] = []
    frontier = [comment_id]
    while frontier:
        children = list(
            db.execute(
                select(Comment.id).where(Comment.parent_comment_id.in_(frontier))
            ).scalars()
        )
        found.extend(children)
        frontier = children
    return found


def delete_comment(db: Session, comment_id: int, actor: User) -> int:
    """Delete a comment together with all replies below it.

    Deepest replies are deleted first, then the comment itself; afterwards the
    confession's comment count and the parent's reply count are reconciled.

    Returns:
        Number of comments removed.

    Raises:
        NotFound: If the comment does not exist.
        Forbidden: If the actor is neither the author nor a moderator.
    """
    comment = get_comment_or_404(db, comment_id)
    if comment.author_id != actor.id and not actor.is_moderator:
        raise Forbidden("You can only delete your own comments")

    confession_id = comment.confession_id
    parent_comment_id = comment.parent_comment_id
    descendants = collect_descendants(db, comment_id)
    db.expunge(comment)
    for child_id in reversed(descendants):
        db.execute(delete(Comment).where(Comment.id == child_id))
    db.execute(delete(Comment).where(Comment.id == comment_id))
    db.commit()
    logger.info(
        "User %s deleted comment %s with %d replies", actor.id, comment_id, len(descendants)
    )

    reconciliation.after_comment_write(db, confession_id, parent_comment_id)
    return len(descendants) + 1


def react_to_comment(db: Session, comment_id: int, reaction: str, *, remove: bool = False) -> Comment:
    """Add or withdraw a like or dislike; counters never drop below zero.

    Raises:
        ValidationError: If the reaction is unknown.
        NotFound: If the comment does not exist.
    """
    column_name = REACTIONS.get(reaction)
    if column_name is None:
        raise ValidationError(f"Unknown reaction: {reaction}")
    get_comment_or_404(db, comment_id)
    column = getattr(Comment, column_name)
    stmt = update(Comment).where(Comment.id == comment_id)
    if remove:
        stmt = stmt.where(column > 0).values({column_name: column - 1})
    else:
        stmt = stmt.values({column_name: column + 1})
    db.execute(stmt)
    db.commit()
    return get_comment_or_404(db, comment_id)


def report_comment(
    db: Session,
    comment_id: int,
    reason: str,
    description: str | None = None,
) -> Comment:
    """Flag a comment for moderator review.

    Raises:
        ValidationError: If the report payload is invalid.
        NotFound: If the comment does not exist.
    """
    stored_reason = validate_report(reason, description)
    get_comment_or_404(db, comment_id)
    db.execute(
        update(Comment)
        .where(Comment.id == comment_id)
        .values(
            report_count=Comment.report_count + 1,
            is_reported=True,
            moderation_reason=stored_reason,
        )
    )
    db.commit()
    return get_comment_or_404(db, comment_id)


def _comment_order(sort: str) -> tuple:
    if sort == "oldest":
        return (Comment.created_at.asc(), Comment.id.asc())
    if sort == "likes":
        return (Comment.likes.desc(), Comment.created_at.desc(), Comment.id.desc())
    return (Comment.created_at.desc(), Comment.id.desc())


def list_comments(
    db: Session,
    confession_id: int,
    *,
    sort: str = "latest",
    page: int = 1,
    page_size: int | None = None,
) -> Page[Comment]:
    """Return approved top-level comments on a confession.

    Raises:
        ValidationError: For an unknown sort or bad pagination.
        NotFound: If the confession does not exist.
    """
    if sort not in COMMENT_SORTS:
        raise ValidationError(f"Unknown sort: {sort}")
    page, page_size = resolve_page(page, page_size)
    get_confession_or_404(db, confession_id)
    stmt = (
        select(Comment)
        .where(
            Comment.confession_id == confession_id,
            Comment.status == STATUS_APPROVED,
            Comment.parent_comment_id.is_(None),
        )
        .order_by(*_comment_order(sort))
    )
    return paginate_query(db, stmt, page, page_size)


def list_replies(
    db: Session,
    comment_id: int,
    *,
    page: int = 1,
    page_size: int | None = None,
) -> Page[Comment]:
    """Return approved direct replies to a comment, oldest first."""
    page, page_size = resolve_page(page, page_size)
    get_comment_or_404(db, comment_id)
    stmt = (
        select(Comment)
        .where(Comment.parent_comment_id == comment_id, Comment.status == STATUS_APPROVED)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return paginate_query(db, stmt, page, page_size)


def hot_comments(db: Session, confession_id: int, *, limit: int = 10) -> list[Comment]:
    """Return the most liked approved top-level comments on a confession."""
    if limit < 1 or limit > 50:
        raise ValidationError("limit must be between 1 and 50")
    get_confession_or_404(db, confession_id)
    stmt = (
        select(Comment)
        .where(
            Comment.confession_id == confession_id,
            Comment.status == STATUS_APPROVED,
            Comment.parent_comment_id.is_(None),
        )
        .order_by(Comment.likes.desc(), Comment.created_at.desc(), Comment.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())
