"""User statistics, vote history and leaderboard endpoints."""

from fastapi import APIRouter, Query

from confession_board.core.errors import Forbidden
from confession_board.schemas.common import PageMeta
from confession_board.schemas.user import (
    LeaderboardEntry,
    LeaderboardResponse,
    UserStatsResponse,
    VoteHistoryItem,
    VoteHistoryPage,
)
from confession_board.services import stats
from confession_board.services.pagination import resolve_page

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    db: SessionDep,
    type: str = Query("reputation", description="reputation, confessions, votes or comments"),
    limit: int = Query(10),
) -> LeaderboardResponse:
    users = stats.leaderboard(db, type, limit)
    column = stats.LEADERBOARD_COLUMNS[type].key
    return LeaderboardResponse(
        type=type,
        entries=[
            LeaderboardEntry(
                rank=position,
                user_id=user.id,
                username=user.username,
                value=getattr(user, column),
            )
            for position, user in enumerate(users, start=1)
        ],
    )


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: int, db: SessionDep) -> UserStatsResponse:
    return UserStatsResponse(user_id=user_id, **stats.user_stats(db, user_id))


@router.get("/{user_id}/votes", response_model=VoteHistoryPage)
async def get_vote_history(
    user_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> VoteHistoryPage:
    """Return a user's votes, newest first.

    Vote history is private: only the user or a moderator may read it.
    """
    if current_user.id != user_id and not current_user.is_moderator:
        raise Forbidden("You can only view your own vote history")
    page, page_size = resolve_page(page, page_size)
    result = stats.vote_history(db, user_id, page, page_size)
    return VoteHistoryPage(
        items=[VoteHistoryItem.model_validate(item) for item in result.items],
        meta=PageMeta.from_page(result),
    )
