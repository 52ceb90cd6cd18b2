"""Comment endpoints: edits, deletion, replies, reactions and search."""

from fastapi import APIRouter, Query, status

from confession_board.schemas.comment import (
    CommentDeleteResponse,
    CommentEdit,
    CommentPage,
    CommentReaction,
    CommentResponse,
)
from confession_board.schemas.common import PageMeta
from confession_board.schemas.moderation import ReportRequest
from confession_board.services import comments as comment_service
from confession_board.services.search import search_comments

from ..dependencies import ActiveUserDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


def _page(result) -> CommentPage:
    return CommentPage(
        items=[CommentResponse.model_validate(item) for item in result.items],
        meta=PageMeta.from_page(result),
    )


@router.get("/search", response_model=CommentPage)
async def search_all_comments(
    db: SessionDep,
    q: str = Query(..., description="Search text"),
    confession_id: int | None = Query(None),
    author_id: int | None = Query(None),
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> CommentPage:
    return _page(
        search_comments(
            db,
            q,
            confession_id=confession_id,
            author_id=author_id,
            page=page,
            page_size=page_size,
        )
    )


@router.patch("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    payload: CommentEdit,
    db: SessionDep,
    current_user: ActiveUserDep,
) -> CommentResponse:
    comment = comment_service.edit_comment(
        db,
        comment_id,
        actor_id=current_user.id,
        content=payload.content,
    )
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    comment_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> CommentDeleteResponse:
    """Delete a comment and every reply below it.

    Args:
        comment_id: Comment to remove
        db: Database session
        current_user: Author of the comment or a moderator

    Returns:
        How many comments were removed
    """
    deleted = comment_service.delete_comment(db, comment_id, current_user)
    return CommentDeleteResponse(comment_id=comment_id, deleted=deleted)


@router.get("/{comment_id}/replies", response_model=CommentPage)
async def list_comment_replies(
    comment_id: int,
    db: SessionDep,
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> CommentPage:
    return _page(comment_service.list_replies(db, comment_id, page=page, page_size=page_size))


@router.post("/{comment_id}/reactions", response_model=CommentResponse)
async def react_to_comment(
    comment_id: int,
    payload: CommentReaction,
    db: SessionDep,
    current_user: ActiveUserDep,
) -> CommentResponse:
    comment = comment_service.react_to_comment(
        db,
        comment_id,
        payload.reaction,
        remove=payload.remove,
    )
    return CommentResponse.model_validate(comment)


@router.post("/{comment_id}/report", status_code=status.HTTP_202_ACCEPTED)
async def report_comment(
    comment_id: int,
    payload: ReportRequest,
    db: SessionDep,
    current_user: ActiveUserDep,
) -> dict[str, str]:
    comment_service.report_comment(db, comment_id, payload.reason, payload.description)
    return {"status": "reported"}
