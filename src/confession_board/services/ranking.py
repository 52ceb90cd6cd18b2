"""Hot ranking for confessions.

    hot = (total_votes * 2 + comments * 3 + views * 0.1) / (age_hours + 2) ** 1.5

The numerator rewards engagement; the super-linear denominator lets fresh
posts surface and old ones decay out. Scores are computed at query time from
the stored counters, so only the age term depends on the clock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Final

from confession_board.db.time import as_utc
from confession_board.models import Confession

VOTE_WEIGHT: Final[float] = 2.0
COMMENT_WEIGHT: Final[float] = 3.0
VIEW_WEIGHT: Final[float] = 0.1
AGE_OFFSET_HOURS: Final[float] = 2.0
GRAVITY: Final[float] = 1.5


def compute_hot_score(
    total_votes: int,
    comments_count: int,
    views_count: int,
    age_hours: float,
) -> float:
    """Return the time-decayed engagement score."""
    engagement = (
        total_votes * VOTE_WEIGHT
        + comments_count * COMMENT_WEIGHT
        + views_count * VIEW_WEIGHT
    )
    return engagement / (max(age_hours, 0.0) + AGE_OFFSET_HOURS) ** GRAVITY


def age_in_hours(created_at: datetime, now: datetime) -> float:
    return (now - as_utc(created_at)).total_seconds() / 3600


def hot_score(confession: Confession, now: datetime) -> float:
    """Return the hot score of a confession at ``now``."""
    return compute_hot_score(
        confession.total_votes,
        confession.comments_count,
        confession.views_count,
        age_in_hours(confession.created_at, now),
    )


def sort_key_newest(confession: Confession) -> tuple[float, int]:
    """Secondary ordering: newer first, then higher id first."""
    return (as_utc(confession.created_at).timestamp(), confession.id)


def hot_sort_key(now: datetime) -> Callable[[Confession], tuple[float, float, int]]:
    """Return the descending sort key for hot ordering at ``now``."""

    def key(confession: Confession) -> tuple[float, float, int]:
        return (hot_score(confession, now), *sort_key_newest(confession))

    return key


def rank_hot(confessions: Iterable[Confession], now: datetime) -> list[Confession]:
    """Order confessions by descending hot score.

    Equal scores fall back to newest first, then the higher id.
    """
    return sorted(confessions, key=hot_sort_key(now), reverse=True)
