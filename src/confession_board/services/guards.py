"""Lookup helpers that turn missing or closed entities into board errors."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from confession_board.core.errors import Forbidden, Gone, NotFound
from confession_board.db.time import utcnow
from confession_board.models import Comment, Confession, User
from confession_board.models.constants import STATUS_APPROVED


def get_confession_or_404(db: Session, confession_id: int) -> Confession:
    confession = db.get(Confession, confession_id)
    if confession is None:
        raise NotFound("Confession not found")
    return confession


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    return comment


def ensure_open(confession: Confession, now: datetime | None = None) -> Confession:
    """Check that a confession accepts votes, comments and views.

    Raises:
        Forbidden: If the confession is not approved.
        Gone: If the confession has expired.
    """
    if confession.status != STATUS_APPROVED:
        raise Forbidden("Confession is not available")
    if confession.is_expired_at(now or utcnow()):
        raise Gone("Confession has expired")
    return confession


def get_open_confession(db: Session, confession_id: int, now: datetime | None = None) -> Confession:
    """Return an approved, unexpired confession or raise the matching error."""
    return ensure_open(get_confession_or_404(db, confession_id), now)


def ensure_can_write(user: User) -> User:
    """Reject suspended and banned accounts.

    Raises:
        Forbidden: If the account is not active.
    """
    if not user.is_active:
        raise Forbidden(f"Account is {user.status}")
    return user
