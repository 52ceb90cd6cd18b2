"""Moderation and maintenance endpoints for moderators and administrators."""

from fastapi import APIRouter, Query

from confession_board.models import Comment, Confession
from confession_board.schemas.comment import CommentAdminResponse
from confession_board.schemas.common import PageMeta
from confession_board.schemas.confession import ConfessionAdminResponse
from confession_board.schemas.moderation import (
    BatchRequest,
    BatchResponse,
    CommentQueuePage,
    ConfessionQueuePage,
    FeatureRequest,
    ModerateRequest,
    RepairResponse,
)
from confession_board.services import moderation
from confession_board.services.repair import repair_counters
from confession_board.services.stats import board_stats

from ..dependencies import AdminDep, ModeratorDep, SessionDep

router = APIRouter(prefix="/admin", tags=["admin"])


def _admin_view(entity: Confession | Comment) -> ConfessionAdminResponse | CommentAdminResponse:
    if isinstance(entity, Confession):
        return ConfessionAdminResponse.from_model(entity)
    return CommentAdminResponse.model_validate(entity)


@router.get("/stats")
async def get_board_stats(db: SessionDep, moderator: ModeratorDep) -> dict[str, dict[str, int]]:
    """Return board-wide counts for the moderation dashboard."""
    return board_stats(db)


@router.get("/queue/confessions", response_model=ConfessionQueuePage)
async def confession_queue(
    db: SessionDep,
    moderator: ModeratorDep,
    status: str | None = Query(None),
    reported: bool | None = Query(None),
    newest_first: bool = Query(True),
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> ConfessionQueuePage:
    result = moderation.moderation_queue(
        db,
        moderation.ENTITY_CONFESSION,
        status=status,
        reported=reported,
        newest_first=newest_first,
        page=page,
        page_size=page_size,
    )
    return ConfessionQueuePage(
        items=[ConfessionAdminResponse.from_model(item) for item in result.items],
        meta=PageMeta.from_page(result),
    )


@router.get("/queue/comments", response_model=CommentQueuePage)
async def comment_queue(
    db: SessionDep,
    moderator: ModeratorDep,
    status: str | None = Query(None),
    reported: bool | None = Query(None),
    newest_first: bool = Query(True),
    page: int = Query(1),
    page_size: int | None = Query(None),
) -> CommentQueuePage:
    result = moderation.moderation_queue(
        db,
        moderation.ENTITY_COMMENT,
        status=status,
        reported=reported,
        newest_first=newest_first,
        page=page,
        page_size=page_size,
    )
    return CommentQueuePage(
        items=[CommentAdminResponse.model_validate(item) for item in result.items],
        meta=PageMeta.from_page(result),
    )


@router.post("/moderate", response_model=ConfessionAdminResponse | CommentAdminResponse)
async def moderate_content(
    payload: ModerateRequest,
    db: SessionDep,
    moderator: ModeratorDep,
) -> ConfessionAdminResponse | CommentAdminResponse:
    """Approve, reject or hide a confession or comment.

    Args:
        payload: Target entity, new status and optional reason
        db: Database session
        moderator: Caller with the moderator or admin role

    Returns:
        The moderated entity including its moderation block
    """
    entity = moderation.moderate(
        db,
        payload.entity_type,
        payload.entity_id,
        payload.status,
        moderator=moderator,
        reason=payload.reason,
    )
    return _admin_view(entity)


@router.post("/confessions/{confession_id}/feature", response_model=ConfessionAdminResponse)
async def feature_confession(
    confession_id: int,
    payload: FeatureRequest,
    db: SessionDep,
    moderator: ModeratorDep,
) -> ConfessionAdminResponse:
    confession = moderation.set_featured(db, confession_id, payload.featured)
    return ConfessionAdminResponse.from_model(confession)


@router.post("/batch", response_model=BatchResponse)
async def batch_moderate(
    payload: BatchRequest,
    db: SessionDep,
    admin: AdminDep,
) -> BatchResponse:
    """Apply one moderation action to up to 100 items."""
    result = moderation.batch(
        db,
        payload.action,
        payload.entity_type,
        payload.ids,
        moderator=admin,
        reason=payload.reason,
    )
    return BatchResponse(
        action=result.action,
        entity_type=result.entity_type,
        processed=result.processed,
        missing=result.missing,
    )


@router.post("/repair", response_model=RepairResponse)
async def repair(db: SessionDep, admin: AdminDep) -> RepairResponse:
    """Recompute every denormalized counter and report drift."""
    report = repair_counters(db)
    return RepairResponse(
        confessions_checked=report.confessions_checked,
        confessions_fixed=report.confessions_fixed,
        comments_checked=report.comments_checked,
        comments_fixed=report.comments_fixed,
    )
