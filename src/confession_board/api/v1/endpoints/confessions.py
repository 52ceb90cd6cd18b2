"""Confession endpoints: listing, submission, votes and comments."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from confession_board.db.time import utcnow
from confession_board.models import User
from confession_board.schemas.comment import CommentCreate, CommentPage, CommentResponse
from confession_board.schemas.common import PageMeta
from confession_board.schemas.confession import (
    ConfessionCreate,
    ConfessionPage,
    ConfessionResponse,
    ShareResponse,
)
from confession_board.schemas.moderation import ReportRequest
from confession_board.schemas.vote import UserVoteResponse, VoteCast, VoteResult, VoteTotals
from confession_board.services import comments as comment_service
from confession_board.services import confessions as confession_service
from confession_board.services import search as search_service
from confession_board.services.guards import get_confession_or_404
from confession_board.services.votes import cast_vote, get_user_vote, get_user_votes

from ..dependencies import (
    ActiveUserDep,
    CurrentUserDep,
    OptionalUserDep,
    SessionDep,
    enforce_quota,
)

router = APIRouter(prefix="/confessions", tags=["confessions"])

ConfessionQuotaDep = Annotated[User, Depends(enforce_quota("confession"))]
VoteQuotaDep = Annotated[User, Depends(enforce_quota("vote"))]
CommentQuotaDep = Annotated[User, Depends(enforce_quota("comment"))]


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag for tag in raw.split(",") if tag.strip()]


@router.get("/", response_model=ConfessionPage)
async def list_confessions(
    db: SessionDep,
    viewer: OptionalUserDep,
    q: str | None = Query(None, description="Free-text search over title, content and tags"),
    category: str | None = Query(None),
    tags: str | None = Query(None, description="Comma-separated tags; any may match"),
    sort: str = Query("latest", description="latest, hot, votes or comments"),
    featured: bool | None = Query(None),
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> ConfessionPage:
    """List or search visible confessions.

    Args:
        db: Database session
        viewer: Caller, if authenticated; used to annotate their votes
        q: Search text
        category: Category filter
        tags: Tag filter
        sort: Sort mode
        featured: Featured filter
        page: 1-based page number
        page_size: Items per page

    Returns:
        One page of confessions with pagination metadata
    """
    now = utcnow()
    result = search_service.search_confessions(
        db,
        text=q,
        category=category,
        tags=_split_tags(tags),
        sort=sort,
        page=page,
        page_size=page_size,
        featured=featured,
        now=now,
    )
    user_votes = (
        get_user_votes(db, viewer.id, [item.id for item in result.items]) if viewer else {}
    )
    return ConfessionPage(
        items=[
            ConfessionResponse.from_model(item, user_vote=user_votes.get(item.id), now=now)
            for item in result.items
        ],
        meta=PageMeta.from_page(result),
    )


@router.post("/", response_model=ConfessionResponse, status_code=status.HTTP_201_CREATED)
async def create_confession(
    payload: ConfessionCreate,
    db: SessionDep,
    current_user: ConfessionQuotaDep,
) -> ConfessionResponse:
    """Submit a new confession."""
    confession = confession_service.create_confession(
        db,
        author_id=current_user.id,
        content=payload.content,
        title=payload.title,
        category=payload.category,
        tags=payload.tags,
        is_anonymous=payload.is_anonymous,
    )
    return ConfessionResponse.from_model(confession)


@router.get("/hot", response_model=ConfessionPage)
async def list_hot_confessions(
    db: SessionDep,
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> ConfessionPage:
    now = utcnow()
    result = search_service.list_hot(db, page=page, page_size=page_size, now=now)
    return ConfessionPage(
        items=[ConfessionResponse.from_model(item, now=now) for item in result.items],
        meta=PageMeta.from_page(result),
    )


@router.get("/featured", response_model=list[ConfessionResponse])
async def list_featured_confessions(db: SessionDep) -> list[ConfessionResponse]:
    now = utcnow()
    return [
        ConfessionResponse.from_model(item, now=now)
        for item in confession_service.list_featured(db, now=now)
    ]


@router.get("/{confession_id}", response_model=ConfessionResponse)
async def get_confession(
    confession_id: int,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> ConfessionResponse:
    """Read a confession, counting the view and including the caller's vote."""
    confession, user_vote = confession_service.get_confession(
        db,
        confession_id,
        viewer_id=viewer.id if viewer else None,
    )
    return ConfessionResponse.from_model(confession, user_vote=user_vote)


@router.delete("/{confession_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_confession(
    confession_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> None:
    confession_service.delete_confession(db, confession_id, current_user)


@router.post("/{confession_id}/vote", response_model=VoteResult)
async def vote_on_confession(
    confession_id: int,
    payload: VoteCast,
    db: SessionDep,
    current_user: VoteQuotaDep,
) -> VoteResult:
    """Cast, switch or retract the caller's vote.

    Args:
        confession_id: Target confession
        payload: Vote type
        db: Database session
        current_user: Authenticated, active, within-quota caller

    Returns:
        The transition taken and the reconciled totals
    """
    outcome = cast_vote(
        db,
        user_id=current_user.id,
        confession_id=confession_id,
        vote_type=payload.type,
    )
    return VoteResult(
        action=outcome.action.value,
        resulting_type=outcome.resulting_type,
        votes=VoteTotals(heaven=outcome.heaven, hell=outcome.hell),
    )


@router.get("/{confession_id}/vote", response_model=UserVoteResponse)
async def get_my_vote(
    confession_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> UserVoteResponse:
    get_confession_or_404(db, confession_id)
    return UserVoteResponse(
        confession_id=confession_id,
        user_vote=get_user_vote(db, current_user.id, confession_id),
    )


@router.post("/{confession_id}/share", response_model=ShareResponse)
async def share_confession(confession_id: int, db: SessionDep) -> ShareResponse:
    shares = confession_service.share_confession(db, confession_id)
    return ShareResponse(confession_id=confession_id, shares_count=shares)


@router.post("/{confession_id}/report", status_code=status.HTTP_202_ACCEPTED)
async def report_confession(
    confession_id: int,
    payload: ReportRequest,
    db: SessionDep,
    current_user: ActiveUserDep,
) -> dict[str, str]:
    confession_service.report_confession(db, confession_id, payload.reason, payload.description)
    return {"status": "reported"}


@router.get("/{confession_id}/comments", response_model=CommentPage)
async def list_confession_comments(
    confession_id: int,
    db: SessionDep,
    sort: str = Query("latest", description="latest, oldest or likes"),
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> CommentPage:
    result = comment_service.list_comments(
        db,
        confession_id,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return CommentPage(
        items=[CommentResponse.model_validate(item) for item in result.items],
        meta=PageMeta.from_page(result),
    )


@router.post(
    "/{confession_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_confession_comment(
    confession_id: int,
    payload: CommentCreate,
    db: SessionDep,
    current_user: CommentQuotaDep,
) -> CommentResponse:
    """Comment on a confession or reply to one of its comments."""
    comment = comment_service.create_comment(
        db,
        author_id=current_user.id,
        confession_id=confession_id,
        content=payload.content,
        parent_comment_id=payload.parent_comment_id,
    )
    return CommentResponse.model_validate(comment)


@router.get("/{confession_id}/comments/hot", response_model=list[CommentResponse])
async def list_hot_comments(
    confession_id: int,
    db: SessionDep,
    limit: int = Query(10),
) -> list[CommentResponse]:
    return [
        CommentResponse.model_validate(item)
        for item in comment_service.hot_comments(db, confession_id, limit=limit)
    ]
