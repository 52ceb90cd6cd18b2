"""Listing and search over confessions and comments.

All public listings share one base predicate: the confession is approved and
either never expires or expires in the future.

Sort orders (ties always broken by newest ``created_at``, then highest id):

* ``latest``   newest first
* ``hot``      descending hot score (see :mod:`ranking`)
* ``votes``    descending heaven + hell, then descending heaven
* ``comments`` descending approved comment count

A text query matches any whitespace separated term against title, content
and tags. Matches are ordered by relevance first (title 10, content 5,
tags 3 per matched term), and the requested sort applies within equal
relevance.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final

from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.orm import Session

from confession_board.core.errors import ValidationError
from confession_board.db.time import as_utc, utcnow
from confession_board.models import Comment, Confession, ConfessionTag
from confession_board.models.constants import CONFESSION_CATEGORIES, STATUS_APPROVED

from . import ranking
from .pagination import Page, paginate_query, paginate_sequence, resolve_page

SORT_LATEST: Final = "latest"
SORT_HOT: Final = "hot"
SORT_VOTES: Final = "votes"
SORT_COMMENTS: Final = "comments"
CONFESSION_SORTS: Final = (SORT_LATEST, SORT_HOT, SORT_VOTES, SORT_COMMENTS)

TITLE_WEIGHT: Final = 10
CONTENT_WEIGHT: Final = 5
TAG_WEIGHT: Final = 3

MAX_QUERY_LENGTH: Final = 100
MAX_QUERY_TERMS: Final = 10


@dataclass
class ConfessionFilters:
    """Optional narrowing applied on top of the visibility predicate."""

    text: str | None = None
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    featured: bool | None = None


def split_terms(text: str | None) -> list[str]:
    """Split a free-text query into distinct lowercase terms.

    Terms are lowercased with ``str.lower`` so they compare equal to the
    SQL ``lower()`` applied to stored text.

    Raises:
        ValidationError: If the query is too long or has too many terms.
    """
    if not text or not text.strip():
        return []
    if len(text.strip()) > MAX_QUERY_LENGTH:
        raise ValidationError(f"Search query cannot exceed {MAX_QUERY_LENGTH} characters")
    terms: list[str] = []
    for raw in text.split():
        term = raw.lower()
        if term not in terms:
            terms.append(term)
    if len(terms) > MAX_QUERY_TERMS:
        raise ValidationError(f"Search query cannot exceed {MAX_QUERY_TERMS} terms")
    return terms


def visible_clause(now: datetime) -> list[ColumnElement[bool]]:
    """Return the predicate for publicly visible confessions."""
    return [
        Confession.status == STATUS_APPROVED,
        or_(Confession.expires_at.is_(None), Confession.expires_at > now),
    ]


def _term_clause(term: str) -> ColumnElement[bool]:
    tag_match = select(ConfessionTag.confession_id).where(
        ConfessionTag.tag.contains(term, autoescape=True)
    )
    return or_(
        func.lower(Confession.title).contains(term, autoescape=True),
        func.lower(Confession.content).contains(term, autoescape=True),
        Confession.id.in_(tag_match),
    )


def build_confession_query(
    filters: ConfessionFilters,
    now: datetime,
    terms: Sequence[str] = (),
) -> Select[Any]:
    """Construct the filtered (unordered) confession query.

    Raises:
        ValidationError: If the category is unknown.
    """
    stmt = select(Confession).where(*visible_clause(now))
    if filters.category:
        if filters.category not in CONFESSION_CATEGORIES:
            raise ValidationError(f"Unknown category: {filters.category}")
        stmt = stmt.where(Confession.category == filters.category)
    tags = [tag.strip().lower() for tag in filters.tags if tag and tag.strip()]
    if tags:
        stmt = stmt.where(
            Confession.id.in_(
                select(ConfessionTag.confession_id).where(ConfessionTag.tag.in_(tags))
            )
        )
    if filters.featured is not None:
        stmt = stmt.where(Confession.featured.is_(filters.featured))
    if terms:
        stmt = stmt.where(or_(*(_term_clause(term) for term in terms)))
    return stmt


def order_by_sort(stmt: Select[Any], sort: str) -> Select[Any]:
    """Apply the SQL ordering for the non-computed sort modes."""
    tie_break = (Confession.created_at.desc(), Confession.id.desc())
    if sort == SORT_VOTES:
        return stmt.order_by(
            (Confession.heaven_votes + Confession.hell_votes).desc(),
            Confession.heaven_votes.desc(),
            *tie_break,
        )
    if sort == SORT_COMMENTS:
        return stmt.order_by(Confession.comments_count.desc(), *tie_break)
    return stmt.order_by(*tie_break)


def relevance(confession: Confession, terms: Sequence[str]) -> int:
    """Score a confession against search terms; title hits weigh most."""
    title = (confession.title or "").lower()
    content = confession.content.lower()
    tags = confession.tags
    score = 0
    for term in terms:
        if term in title:
            score += TITLE_WEIGHT
        if term in content:
            score += CONTENT_WEIGHT
        if any(term in tag for tag in tags):
            score += TAG_WEIGHT
    return score


def _sort_key(sort: str, now: datetime):
    newest = ranking.sort_key_newest
    if sort == SORT_HOT:
        return ranking.hot_sort_key(now)
    if sort == SORT_VOTES:
        return lambda item: (item.total_votes, item.heaven_votes, *newest(item))
    if sort == SORT_COMMENTS:
        return lambda item: (item.comments_count, *newest(item))
    return newest


def search_confessions(
    db: Session,
    *,
    text: str | None = None,
    category: str | None = None,
    tags: Sequence[str] | None = None,
    sort: str = SORT_LATEST,
    page: int = 1,
    page_size: int | None = None,
    featured: bool | None = None,
    now: datetime | None = None,
) -> Page[Confession]:
    """Return one page of visible confessions matching the filters.

    Raises:
        ValidationError: For an unknown sort, category, or bad pagination.
    """
    if sort not in CONFESSION_SORTS:
        raise ValidationError(f"Unknown sort: {sort}")
    page, page_size = resolve_page(page, page_size)
    now = now or utcnow()
    terms = split_terms(text)
    filters = ConfessionFilters(
        text=text,
        category=category,
        tags=list(tags or []),
        featured=featured,
    )
    stmt = build_confession_query(filters, now, terms)

    if not terms and sort != SORT_HOT:
        return paginate_query(db, order_by_sort(stmt, sort), page, page_size)

    candidates = list(db.execute(stmt).scalars())
    key = _sort_key(sort, now)
    if terms:
        ordered = sorted(
            candidates,
            key=lambda item: (relevance(item, terms), *key(item)),
            reverse=True,
        )
    else:
        ordered = sorted(candidates, key=key, reverse=True)
    return paginate_sequence(ordered, page, page_size)


def list_hot(
    db: Session,
    *,
    page: int = 1,
    page_size: int | None = None,
    now: datetime | None = None,
) -> Page[Confession]:
    """Return visible confessions ordered by hot score."""
    return search_confessions(db, sort=SORT_HOT, page=page, page_size=page_size, now=now)


def search_comments(
    db: Session,
    text: str,
    *,
    confession_id: int | None = None,
    author_id: int | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> Page[Comment]:
    """Return approved comments whose content contains any query term.

    Comments matching more terms rank first, newest first within a tie.

    Raises:
        ValidationError: If the query is empty or too long.
    """
    terms = split_terms(text)
    if not terms:
        raise ValidationError("Search query is required")
    page, page_size = resolve_page(page, page_size)
    stmt = select(Comment).where(
        Comment.status == STATUS_APPROVED,
        or_(*(func.lower(Comment.content).contains(term, autoescape=True) for term in terms)),
    )
    if confession_id is not None:
        stmt = stmt.where(Comment.confession_id == confession_id)
    if author_id is not None:
        stmt = stmt.where(Comment.author_id == author_id)

    candidates = list(db.execute(stmt).scalars())

    def _score(comment: Comment) -> tuple[int, float, int]:
        content = comment.content.lower()
        hits = sum(1 for term in terms if term in content)
        return (hits, as_utc(comment.created_at).timestamp(), comment.id)

    ordered = sorted(candidates, key=_score, reverse=True)
    return paginate_sequence(ordered, page, page_size)
