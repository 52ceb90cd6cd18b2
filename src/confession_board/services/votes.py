"""Vote ledger and the per-user vote state machine.

Each (user, confession) pair is in one of three states: no vote, voted
heaven or voted hell. Casting a vote moves between them:

    NoVote      + cast(T)            -> Voted(T)    action = added
    Voted(T)    + cast(T)            -> NoVote      action = removed
    Voted(T)    + cast(T'), T' != T  -> Voted(T')   action = changed

The unique index on ``(user_id, confession_id)`` is the authority against
duplicate votes. If a concurrent request inserts first, the losing insert is
replayed against the row that won. If a concurrent request removes the row
between the read and the write, the cast is replayed against what remains.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from confession_board.core.errors import Conflict, ValidationError
from confession_board.db.time import utcnow
from confession_board.models import Vote
from confession_board.models.constants import VOTE_TYPES

from . import reconciliation, stats
from .guards import get_open_confession

logger = logging.getLogger(__name__)


class VoteAction(StrEnum):
    """Named transitions of the vote state machine."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a cast: the transition taken and the pair's new state."""

    action: VoteAction
    resulting_type: str | None
    heaven: int = 0
    hell: int = 0


def transition(current: str | None, cast: str) -> tuple[VoteAction, str | None]:
    """Return the action and resulting state for casting ``cast`` from ``current``."""
    if current is None:
        return VoteAction.ADDED, cast
    if current == cast:
        return VoteAction.REMOVED, None
    return VoteAction.CHANGED, cast


def _find_vote(db: Session, user_id: int, confession_id: int) -> Vote | None:
    return db.execute(
        select(Vote).where(Vote.user_id == user_id, Vote.confession_id == confession_id)
    ).scalar_one_or_none()


def get_user_vote(db: Session, user_id: int, confession_id: int) -> str | None:
    """Return the vote type a user currently holds on a confession."""
    vote = _find_vote(db, user_id, confession_id)
    return vote.type if vote else None


def get_user_votes(db: Session, user_id: int, confession_ids: Iterable[int]) -> dict[int, str]:
    """Map confession id to the user's vote type for the given confessions."""
    ids = list(confession_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(Vote.confession_id, Vote.type).where(
            Vote.user_id == user_id,
            Vote.confession_id.in_(ids),
        )
    ).all()
    return {confession_id: vote_type for confession_id, vote_type in rows}


def _apply_to_existing(
    db: Session,
    existing: Vote,
    vote_type: str,
    *,
    recover: bool = True,
) -> tuple[VoteAction, str | None]:
    user_id, confession_id = existing.user_id, existing.confession_id
    action, resulting = transition(existing.type, vote_type)
    try:
        if action is VoteAction.REMOVED:
            db.delete(existing)
        else:
            existing.type = vote_type
        db.commit()
    except StaleDataError:
        # The row was removed by another request after it was read.
        db.rollback()
        if existing in db:
            db.expunge(existing)
        if not recover:
            raise Conflict("Vote could not be recorded, please retry") from None
        logger.info(
            "Replaying vote for user %s on confession %s after concurrent removal",
            user_id,
            confession_id,
        )
        current = _find_vote(db, user_id, confession_id)
        if current is None:
            return _insert_vote(db, user_id, confession_id, vote_type, recover=False)
        return _apply_to_existing(db, current, vote_type, recover=False)
    return action, resulting


def _insert_vote(
    db: Session,
    user_id: int,
    confession_id: int,
    vote_type: str,
    *,
    recover: bool = True,
) -> tuple[VoteAction, str | None]:
    try:
        db.add(Vote(user_id=user_id, confession_id=confession_id, type=vote_type))
        db.commit()
    except IntegrityError:
        # Another request created the pair first; treat its row as the prior state.
        db.rollback()
        existing = _find_vote(db, user_id, confession_id) if recover else None
        if existing is None:
            raise Conflict("Vote could not be recorded, please retry") from None
        logger.info(
            "Recovered concurrent vote for user %s on confession %s", user_id, confession_id
        )
        return _apply_to_existing(db, existing, vote_type, recover=False)
    return VoteAction.ADDED, vote_type


def cast_vote(
    db: Session,
    *,
    user_id: int,
    confession_id: int,
    vote_type: str,
    now: datetime | None = None,
) -> VoteOutcome:
    """Cast, switch or retract a user's vote on a confession.

    Args:
        db: Database session
        user_id: Voting user
        confession_id: Target confession
        vote_type: ``heaven`` or ``hell``
        now: Clock override used for the expiry check

    Returns:
        The transition taken and the confession's reconciled totals.

    Raises:
        ValidationError: If ``vote_type`` is not a known vote type.
        NotFound: If the confession does not exist.
        Forbidden: If the confession is not approved.
        Gone: If the confession has expired.
        Conflict: If a concurrent write could not be reconciled.
    """
    if vote_type not in VOTE_TYPES:
        raise ValidationError("Vote type must be heaven or hell")
    get_open_confession(db, confession_id, now or utcnow())

    existing = _find_vote(db, user_id, confession_id)
    if existing is None:
        action, resulting = _insert_vote(db, user_id, confession_id, vote_type)
    else:
        action, resulting = _apply_to_existing(db, existing, vote_type)

    reconciliation.after_vote_write(db, confession_id)
    if action is VoteAction.ADDED:
        stats.record_vote_added(db, user_id)

    counts = reconciliation.count_votes(db, confession_id)
    return VoteOutcome(
        action=action,
        resulting_type=resulting,
        heaven=counts["heaven"],
        hell=counts["hell"],
    )
