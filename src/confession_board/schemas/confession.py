"""Confession-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from confession_board.db.time import utcnow
from confession_board.models import Confession
from confession_board.services.ranking import hot_score

from .common import PageMeta
from .vote import VoteTotals


class ConfessionCreate(BaseModel):
    """Schema for submitting a new confession.

    Lengths and enums are checked by the service so that violations surface
    as ``validation_error`` rather than a request-shape error.
    """

    content: str = Field(..., description="Confession text, 10-2000 characters")
    title: str | None = Field(None, description="Optional title, up to 100 characters")
    category: str | None = Field(None, description="personal, work, relationship, family, moral or other")
    tags: list[str] = Field(default_factory=list, description="Up to five tags")
    is_anonymous: bool = Field(True, description="Hide the author from readers")


class ConfessionResponse(BaseModel):
    """Schema for confession information returned by the API."""

    id: int
    title: str | None
    content: str
    author_id: int | None
    is_anonymous: bool
    category: str
    tags: list[str]
    status: str
    votes: VoteTotals
    total_votes: int
    heaven_percentage: int
    hell_percentage: int
    comments_count: int
    views_count: int
    shares_count: int
    hot_score: float
    featured: bool
    is_expired: bool
    expires_at: datetime | None
    created_at: datetime
    user_vote: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(
        cls,
        confession: Confession,
        *,
        user_vote: str | None = None,
        now: datetime | None = None,
    ) -> ConfessionResponse:
        now = now or utcnow()
        return cls(
            id=confession.id,
            title=confession.title,
            content=confession.content,
            author_id=None if confession.is_anonymous else confession.author_id,
            is_anonymous=confession.is_anonymous,
            category=confession.category,
            tags=confession.tags,
            status=confession.status,
            votes=VoteTotals(**confession.votes),
            total_votes=confession.total_votes,
            heaven_percentage=confession.heaven_percentage,
            hell_percentage=confession.hell_percentage,
            comments_count=confession.comments_count,
            views_count=confession.views_count,
            shares_count=confession.shares_count,
            hot_score=round(hot_score(confession, now), 2),
            featured=confession.featured,
            is_expired=confession.is_expired_at(now),
            expires_at=confession.expires_at,
            created_at=confession.created_at,
            user_vote=user_vote,
        )


class ConfessionAdminResponse(ConfessionResponse):
    """Confession view for moderators, including the moderation block."""

    is_reported: bool
    report_count: int
    moderated_by: int | None
    moderated_at: datetime | None
    moderation_reason: str | None

    @classmethod
    def from_model(
        cls,
        confession: Confession,
        *,
        user_vote: str | None = None,
        now: datetime | None = None,
    ) -> ConfessionAdminResponse:
        base = ConfessionResponse.from_model(confession, user_vote=user_vote, now=now)
        return cls(
            **base.model_dump(),
            is_reported=confession.is_reported,
            report_count=confession.report_count,
            moderated_by=confession.moderated_by,
            moderated_at=confession.moderated_at,
            moderation_reason=confession.moderation_reason,
        )


class ConfessionPage(BaseModel):
    items: list[ConfessionResponse]
    meta: PageMeta


class ShareResponse(BaseModel):
    confession_id: int
    shares_count: int
