"""User-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .common import PageMeta


class UserStatsResponse(BaseModel):
    user_id: int
    confessions_count: int
    votes_count: int
    comments_count: int
    reputation: int


class LeaderboardEntry(BaseModel):
    """One ranked user on the leaderboard."""

    rank: int
    user_id: int
    username: str
    value: int


class LeaderboardResponse(BaseModel):
    type: str
    entries: list[LeaderboardEntry]


class VoteHistoryItem(BaseModel):
    confession_id: int
    type: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteHistoryPage(BaseModel):
    items: list[VoteHistoryItem]
    meta: PageMeta
