"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field

from confession_board.services.pagination import Page


class PageMeta(BaseModel):
    """Pagination bookkeeping returned alongside list results."""

    page: int = Field(..., description="1-based page number.")
    page_size: int = Field(..., description="Requested page size.")
    total: int = Field(..., description="Number of matching items across all pages.")
    pages: int = Field(..., description="Number of pages at this page size.")
    has_more: bool = Field(..., description="Whether a later page exists.")

    @classmethod
    def from_page(cls, page: Page) -> PageMeta:
        return cls(
            page=page.page,
            page_size=page.page_size,
            total=page.total,
            pages=page.pages,
            has_more=page.has_more,
        )


class ErrorResponse(BaseModel):
    """Body returned for every rejected operation."""

    error: str = Field(..., description="Stable error kind, e.g. not_found.")
    detail: str = Field(..., description="Human-readable reason.")
