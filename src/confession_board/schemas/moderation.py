"""Moderation-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .comment import CommentAdminResponse
from .common import PageMeta
from .confession import ConfessionAdminResponse


class ReportRequest(BaseModel):
    """Schema for flagging a confession or comment."""

    reason: str = Field(..., description="spam, inappropriate, harassment, fake or other")
    description: str | None = Field(None, description="Optional details, up to 200 characters")


class ModerateRequest(BaseModel):
    """Schema for a single moderation decision."""

    entity_type: str = Field(..., description="confession or comment")
    entity_id: int
    status: str = Field(..., description="approved, rejected or hidden")
    reason: str | None = None


class FeatureRequest(BaseModel):
    featured: bool = True


class BatchRequest(BaseModel):
    """Schema for applying one action to many items."""

    action: str = Field(..., description="approve, reject, hide or delete")
    entity_type: str = Field(..., description="confession or comment")
    ids: list[int] = Field(default_factory=list)
    reason: str | None = None


class BatchResponse(BaseModel):
    action: str
    entity_type: str
    processed: list[int]
    missing: list[int]


class ConfessionQueuePage(BaseModel):
    items: list[ConfessionAdminResponse]
    meta: PageMeta


class CommentQueuePage(BaseModel):
    items: list[CommentAdminResponse]
    meta: PageMeta


class RepairResponse(BaseModel):
    """Counts reported by one counter repair pass."""

    confessions_checked: int
    confessions_fixed: int
    comments_checked: int
    comments_fixed: int
