"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import PageMeta


class CommentCreate(BaseModel):
    """Schema for creating a comment or a reply."""

    content: str = Field(..., description="Comment text, 1-500 characters")
    parent_comment_id: int | None = Field(None, description="Comment being replied to")


class CommentEdit(BaseModel):
    content: str


class CommentReaction(BaseModel):
    """Schema for adding or withdrawing a like/dislike."""

    reaction: str = Field(..., description="like or dislike")
    remove: bool = Field(False, description="Withdraw instead of add")


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    content: str
    author_id: int
    confession_id: int
    parent_comment_id: int | None
    status: str
    likes: int
    dislikes: int
    net_likes: int
    replies_count: int
    is_reply: bool
    is_edited: bool
    edited_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentAdminResponse(CommentResponse):
    is_reported: bool
    report_count: int
    moderated_by: int | None
    moderated_at: datetime | None
    moderation_reason: str | None


class CommentPage(BaseModel):
    items: list[CommentResponse]
    meta: PageMeta


class CommentDeleteResponse(BaseModel):
    comment_id: int
    deleted: int = Field(..., description="Comments removed, including replies")
