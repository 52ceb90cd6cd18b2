"""Skip/limit pagination helpers shared by list operations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from confession_board.core.errors import ValidationError
from confession_board.core.settings import settings

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the bookkeeping callers need to continue."""

    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total // self.page_size)


def resolve_page(page: int, page_size: int | None, max_page_size: int | None = None) -> tuple[int, int]:
    """Validate pagination arguments and apply the configured defaults.

    Raises:
        ValidationError: If the page or page size is out of range.
    """
    limit = max_page_size or settings.max_page_size
    size = settings.default_page_size if page_size is None else page_size
    if page < 1:
        raise ValidationError("page must be a positive integer")
    if size < 1 or size > limit:
        raise ValidationError(f"page size must be between 1 and {limit}")
    return page, size


def paginate_query(
    db: Session,
    stmt: Select[Any],
    page: int,
    page_size: int,
) -> Page[Any]:
    """Execute ``stmt`` with skip/limit and count the unpaged total."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = db.execute(count_stmt).scalar_one()
    offset = (page - 1) * page_size
    items = list(db.execute(stmt.offset(offset).limit(page_size)).scalars())
    return Page(items=items, page=page, page_size=page_size, total=total)


def paginate_sequence(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice an already ordered in-memory sequence."""
    offset = (page - 1) * page_size
    return Page(
        items=list(items[offset:offset + page_size]),
        page=page,
        page_size=page_size,
        total=len(items),
    )
