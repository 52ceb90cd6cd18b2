"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field


class VoteCast(BaseModel):
    """Schema for casting, switching or retracting a vote."""

    type: str = Field(..., description="heaven or hell")


class VoteTotals(BaseModel):
    heaven: int = 0
    hell: int = 0


class VoteResult(BaseModel):
    """Outcome of a vote cast."""

    action: str = Field(..., description="added, changed or removed")
    resulting_type: str | None = Field(None, description="The user's vote after the cast")
    votes: VoteTotals


class UserVoteResponse(BaseModel):
    confession_id: int
    user_vote: str | None = None
