"""Confession lifecycle: submission, reads, shares, reports and deletion."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Final

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from confession_board.core.errors import Forbidden, NotFound, ValidationError
from confession_board.core.settings import settings
from confession_board.db.time import utcnow
from confession_board.models import Comment, Confession, ConfessionTag, User, Vote
from confession_board.models.constants import (
    CATEGORY_OTHER,
    CONFESSION_CATEGORIES,
    REPORT_REASONS,
)

from . import stats
from .guards import get_confession_or_404, get_open_confession
from .search import visible_clause
from .votes import get_user_vote

logger = logging.getLogger(__name__)

CONTENT_MIN_LENGTH: Final = 10
CONTENT_MAX_LENGTH: Final = 2000
TITLE_MAX_LENGTH: Final = 100
MAX_TAGS: Final = 5
TAG_MAX_LENGTH: Final = 20
REPORT_DESCRIPTION_MAX_LENGTH: Final = 200


def normalize_tags(tags: Sequence[str] | None) -> list[str]:
    """Trim, lowercase and de-duplicate tags, dropping blanks.

    Raises:
        ValidationError: If more than five tags are given or one is too long.
    """
    if not tags:
        return []
    if len(tags) > MAX_TAGS:
        raise ValidationError(f"At most {MAX_TAGS} tags are allowed")
    normalized: list[str] = []
    for raw in tags:
        tag = (raw or "").strip().lower()
        if not tag:
            continue
        if len(tag) > TAG_MAX_LENGTH:
            raise ValidationError(f"Tags cannot exceed {TAG_MAX_LENGTH} characters")
        if tag not in normalized:
            normalized.append(tag)
    return normalized


def _validate_content(content: str | None) -> str:
    text = (content or "").strip()
    if not CONTENT_MIN_LENGTH <= len(text) <= CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Content must be between {CONTENT_MIN_LENGTH} and {CONTENT_MAX_LENGTH} characters"
        )
    return text


def _validate_title(title: str | None) -> str | None:
    if title is None:
        return None
    text = title.strip()
    if len(text) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return text or None


def create_confession(
    db: Session,
    *,
    author_id: int | None,
    content: str,
    title: str | None = None,
    category: str | None = None,
    tags: Sequence[str] | None = None,
    is_anonymous: bool = True,
    now: datetime | None = None,
) -> Confession:
    """Validate and persist a new confession.

    Anonymous confessions (or submissions without an author) store no author.
    The confession expires ``CONFESSION_TTL_DAYS`` after creation.

    Raises:
        ValidationError: For content, title, category or tag violations.
    """
    text = _validate_content(content)
    clean_title = _validate_title(title)
    clean_category = category or CATEGORY_OTHER
    if clean_category not in CONFESSION_CATEGORIES:
        raise ValidationError(f"Unknown category: {clean_category}")
    clean_tags = normalize_tags(tags)

    now = now or utcnow()
    anonymous = is_anonymous or author_id is None
    confession = Confession(
        title=clean_title,
        content=text,
        author_id=None if anonymous else author_id,
        is_anonymous=anonymous,
        category=clean_category,
        created_at=now,
        updated_at=now,
        expires_at=now + timedelta(days=settings.confession_ttl_days),
        tag_rows=[
            ConfessionTag(tag=tag, position=position)
            for position, tag in enumerate(clean_tags)
        ],
    )
    db.add(confession)
    db.commit()
    db.refresh(confession)

    if not anonymous and author_id is not None:
        stats.record_confession_created(db, author_id)
    return confession


def get_confession(
    db: Session,
    confession_id: int,
    *,
    viewer_id: int | None = None,
    now: datetime | None = None,
) -> tuple[Confession, str | None]:
    """Return a visible confession and the viewer's vote, counting the view.

    Raises:
        NotFound: If the confession does not exist.
        Forbidden: If it is not approved.
        Gone: If it has expired.
    """
    confession = get_open_confession(db, confession_id, now)
    db.execute(
        update(Confession)
        .where(Confession.id == confession_id)
        .values(views_count=Confession.views_count + 1)
    )
    db.commit()
    db.refresh(confession)
    user_vote = get_user_vote(db, viewer_id, confession_id) if viewer_id is not None else None
    return confession, user_vote


def share_confession(db: Session, confession_id: int) -> int:
    """Count a share and return the new share total.

    Raises:
        NotFound: If the confession does not exist.
    """
    result = db.execute(
        update(Confession)
        .where(Confession.id == confession_id)
        .values(shares_count=Confession.shares_count + 1)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFound("Confession not found")
    db.commit()
    return db.execute(
        select(Confession.shares_count).where(Confession.id == confession_id)
    ).scalar_one()


def validate_report(reason: str, description: str | None) -> str:
    """Return the stored moderation reason for a report.

    Raises:
        ValidationError: If the reason is unknown or the description too long.
    """
    if reason not in REPORT_REASONS:
        raise ValidationError(f"Unknown report reason: {reason}")
    if description and len(description) > REPORT_DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description cannot exceed {REPORT_DESCRIPTION_MAX_LENGTH} characters"
        )
    return f"{reason}: {description or ''}".strip()


def report_confession(
    db: Session,
    confession_id: int,
    reason: str,
    description: str | None = None,
) -> Confession:
    """Flag a confession for moderator review.

    Raises:
        ValidationError: If the report payload is invalid.
        NotFound: If the confession does not exist.
    """
    stored_reason = validate_report(reason, description)
    get_confession_or_404(db, confession_id)
    db.execute(
        update(Confession)
        .where(Confession.id == confession_id)
        .values(
            report_count=Confession.report_count + 1,
            is_reported=True,
            moderation_reason=stored_reason,
        )
    )
    db.commit()
    return get_confession_or_404(db, confession_id)


def list_featured(
    db: Session,
    *,
    limit: int | None = None,
    now: datetime | None = None,
) -> list[Confession]:
    """Return featured visible confessions, most recently featured first."""
    stmt = (
        select(Confession)
        .where(Confession.featured.is_(True), *visible_clause(now or utcnow()))
        .order_by(Confession.featured_at.desc(), Confession.id.desc())
        .limit(limit or settings.featured_limit)
    )
    return list(db.execute(stmt).scalars())


def purge_confession(db: Session, confession_id: int) -> None:
    """Delete a confession after its votes and comments.

    Children go first so no vote or comment ever references a missing
    confession. The caller commits.
    """
    db.execute(delete(Vote).where(Vote.confession_id == confession_id))
    # Replies reference other comments on the same confession; drop links first.
    db.execute(
        update(Comment)
        .where(Comment.confession_id == confession_id)
        .values(parent_comment_id=None)
    )
    db.execute(delete(Comment).where(Comment.confession_id == confession_id))
    db.execute(delete(ConfessionTag).where(ConfessionTag.confession_id == confession_id))
    db.execute(delete(Confession).where(Confession.id == confession_id))


def delete_confession(db: Session, confession_id: int, actor: User) -> None:
    """Delete a confession with all its votes and comments.

    Raises:
        NotFound: If the confession does not exist.
        Forbidden: If the actor is neither the author nor an administrator.
    """
    confession = get_confession_or_404(db, confession_id)
    if not actor.is_admin and (confession.author_id is None or confession.author_id != actor.id):
        raise Forbidden("You can only delete your own confessions")
    db.expunge(confession)
    purge_confession(db, confession_id)
    db.commit()
    logger.info("User %s deleted confession %s", actor.id, confession_id)
