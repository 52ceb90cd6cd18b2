"""Moderation actions: status transitions, featuring, batches and queues.

Authorization is decided at the boundary; these functions apply the state
change and keep the denormalized counters right when content moves in or
out of the approved state.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

from sqlalchemy import select
from sqlalchemy.orm import Session

from confession_board.core.errors import NotFound, ValidationError
from confession_board.core.settings import settings
from confession_board.db.time import utcnow
from confession_board.models import Comment, Confession, User
from confession_board.models.constants import (
    STATUS_APPROVED,
    STATUS_HIDDEN,
    STATUS_REJECTED,
)

from . import reconciliation
from .comments import delete_comment
from .confessions import delete_confession
from .guards import get_comment_or_404, get_confession_or_404
from .pagination import Page, paginate_query, resolve_page

logger = logging.getLogger(__name__)

ENTITY_CONFESSION: Final = "confession"
ENTITY_COMMENT: Final = "comment"
ENTITY_TYPES: Final = (ENTITY_CONFESSION, ENTITY_COMMENT)

MODERATION_STATUSES: Final = (STATUS_APPROVED, STATUS_REJECTED, STATUS_HIDDEN)
BATCH_ACTIONS: Final = {
    "approve": STATUS_APPROVED,
    "reject": STATUS_REJECTED,
    "hide": STATUS_HIDDEN,
    "delete": None,
}
BATCH_MAX_ITEMS: Final = 100
REASON_MAX_LENGTH: Final = 200


@dataclass
class BatchResult:
    """Outcome of a batch moderation request."""

    action: str
    entity_type: str
    processed: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)


def _validate_entity_type(entity_type: str) -> str:
    if entity_type not in ENTITY_TYPES:
        raise ValidationError(f"Unknown entity type: {entity_type}")
    return entity_type


def _validate_reason(reason: str | None) -> str | None:
    if reason is None:
        return None
    text = reason.strip()
    if len(text) > REASON_MAX_LENGTH:
        raise ValidationError(f"Reason cannot exceed {REASON_MAX_LENGTH} characters")
    return text or None


def moderate(
    db: Session,
    entity_type: str,
    entity_id: int,
    new_status: str,
    *,
    moderator: User,
    reason: str | None = None,
    now: datetime | None = None,
) -> Confession | Comment:
    """Apply a moderation decision to a confession or a comment.

    A comment crossing the approved boundary changes what its confession and
    parent count, so both are reconciled.

    Raises:
        ValidationError: For an unknown entity type, status or an overlong reason.
        NotFound: If the entity does not exist.
    """
    _validate_entity_type(entity_type)
    if new_status not in MODERATION_STATUSES:
        raise ValidationError(f"Unknown moderation status: {new_status}")
    clean_reason = _validate_reason(reason)
    now = now or utcnow()

    entity: Confession | Comment
    if entity_type == ENTITY_CONFESSION:
        entity = get_confession_or_404(db, entity_id)
    else:
        entity = get_comment_or_404(db, entity_id)

    previous_status = entity.status
    entity.status = new_status
    entity.moderated_by = moderator.id
    entity.moderated_at = now
    entity.moderation_reason = clean_reason
    db.commit()
    logger.info(
        "Moderator %s set %s %s to %s (reason: %s)",
        moderator.id,
        entity_type,
        entity_id,
        new_status,
        clean_reason or "none",
    )

    crossed = (previous_status == STATUS_APPROVED) != (new_status == STATUS_APPROVED)
    if crossed:
        if isinstance(entity, Comment):
            reconciliation.after_comment_write(db, entity.confession_id, entity.parent_comment_id)
        else:
            reconciliation.after_vote_write(db, entity.id)
            reconciliation.after_comment_write(db, entity.id)
        db.refresh(entity)
    return entity


def set_featured(
    db: Session,
    confession_id: int,
    featured: bool,
    *,
    now: datetime | None = None,
) -> Confession:
    """Feature or unfeature a confession.

    Raises:
        NotFound: If the confession does not exist.
    """
    confession = get_confession_or_404(db, confession_id)
    confession.featured = featured
    if featured:
        confession.featured_at = now or utcnow()
    db.commit()
    db.refresh(confession)
    return confession


def batch(
    db: Session,
    action: str,
    entity_type: str,
    ids: Sequence[int],
    *,
    moderator: User,
    reason: str | None = None,
) -> BatchResult:
    """Apply one action to many confessions or comments.

    Each item goes through the single-entity path so cascades and
    reconciliation run for every one. Ids that no longer exist, including
    replies already removed by an earlier cascade, are reported as missing.

    Raises:
        ValidationError: For an unknown action or entity type, or a bad id list.
    """
    if action not in BATCH_ACTIONS:
        raise ValidationError(f"Unknown batch action: {action}")
    _validate_entity_type(entity_type)
    if not 1 <= len(ids) <= BATCH_MAX_ITEMS:
        raise ValidationError(f"Batch must contain between 1 and {BATCH_MAX_ITEMS} ids")
    _validate_reason(reason)

    result = BatchResult(action=action, entity_type=entity_type)
    new_status = BATCH_ACTIONS[action]
    for entity_id in dict.fromkeys(ids):
        try:
            if new_status is None and entity_type == ENTITY_CONFESSION:
                delete_confession(db, entity_id, moderator)
            elif new_status is None:
                delete_comment(db, entity_id, moderator)
            else:
                moderate(
                    db,
                    entity_type,
                    entity_id,
                    new_status,
                    moderator=moderator,
                    reason=reason,
                )
        except NotFound:
            result.missing.append(entity_id)
            continue
        result.processed.append(entity_id)

    logger.info(
        "Moderator %s ran batch %s on %d %s items (%d missing)",
        moderator.id,
        action,
        len(result.processed),
        entity_type,
        len(result.missing),
    )
    return result


def moderation_queue(
    db: Session,
    entity_type: str,
    *,
    status: str | None = None,
    reported: bool | None = None,
    newest_first: bool = True,
    page: int = 1,
    page_size: int | None = None,
) -> Page[Confession] | Page[Comment]:
    """List content for moderators, with totals.

    Raises:
        ValidationError: For an unknown entity type, status or bad pagination.
    """
    _validate_entity_type(entity_type)
    page, page_size = resolve_page(page, page_size, settings.admin_max_page_size)
    model = Confession if entity_type == ENTITY_CONFESSION else Comment
    stmt = select(model)
    if status is not None:
        if status not in (*MODERATION_STATUSES, "pending"):
            raise ValidationError(f"Unknown status: {status}")
        stmt = stmt.where(model.status == status)
    if reported:
        stmt = stmt.where(model.is_reported.is_(True))
    if newest_first:
        stmt = stmt.order_by(model.created_at.desc(), model.id.desc())
    else:
        stmt = stmt.order_by(model.created_at.asc(), model.id.asc())
    return paginate_query(db, stmt, page, page_size)
