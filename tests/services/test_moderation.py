"""Tests for moderation actions."""

import pytest

from confession_board.core.errors import NotFound, ValidationError
from confession_board.models import Comment, Confession
from confession_board.models.constants import STATUS_APPROVED, STATUS_HIDDEN, STATUS_PENDING
from confession_board.services.comments import create_comment
from confession_board.services.moderation import (
    batch,
    moderate,
    moderation_queue,
    set_featured,
)


def test_hiding_comment_reconciles_counts(db_session, confession, test_user, moderator) -> None:
    top = create_comment(db_session, author_id=test_user.id, confession_id=confession.id, content="top")
    reply = create_comment(
        db_session,
        author_id=test_user.id,
        confession_id=confession.id,
        content="reply",
        parent_comment_id=top.id,
    )

    moderate(db_session, "comment", reply.id, STATUS_HIDDEN, moderator=moderator, reason="rude")
    db_session.refresh(confession)
    db_session.refresh(top)
    assert confession.comments_count == 1
    assert top.replies_count == 0

    moderate(db_session, "comment", reply.id, STATUS_APPROVED, moderator=moderator)
    db_session.refresh(confession)
    db_session.refresh(top)
    assert confession.comments_count == 2
    assert top.replies_count == 1


def test_moderation_stamps_entity(db_session, make_confession, moderator, caplog) -> None:
    confession = make_confession(status=STATUS_PENDING)

    with caplog.at_level("INFO", logger="confession_board.services.moderation"):
        result = moderate(
            db_session, "confession", confession.id, STATUS_APPROVED, moderator=moderator, reason=" ok "
        )

    assert isinstance(result, Confession)
    assert result.status == STATUS_APPROVED
    assert result.moderated_by == moderator.id
    assert result.moderated_at is not None
    assert result.moderation_reason == "ok"
    assert f"Moderator {moderator.id} set confession {confession.id} to approved" in caplog.text


@pytest.mark.parametrize(
    ("entity_type", "status"),
    [("post", STATUS_HIDDEN), ("confession", "pending"), ("confession", "deleted")],
)
def test_moderate_validation(db_session, confession, moderator, entity_type, status) -> None:
    with pytest.raises(ValidationError):
        moderate(db_session, entity_type, confession.id, status, moderator=moderator)


def test_moderate_missing_entity(db_session, moderator) -> None:
    with pytest.raises(NotFound):
        moderate(db_session, "comment", 77, STATUS_HIDDEN, moderator=moderator)


def test_set_featured(db_session, confession) -> None:
    featured = set_featured(db_session, confession.id, True)
    assert featured.featured is True
    assert featured.featured_at is not None

    assert set_featured(db_session, confession.id, False).featured is False


def test_batch_hide_comments(db_session, confession, test_user, admin) -> None:
    ids = [
        create_comment(db_session, author_id=test_user.id, confession_id=confession.id, content=text).id
        for text in ("a", "b", "c")
    ]

    result = batch(db_session, "hide", "comment", [*ids, ids[0], 999], moderator=admin)

    assert result.processed == ids
    assert result.missing == [999]
    db_session.refresh(confession)
    assert confession.comments_count == 0
    assert all(db_session.get(Comment, cid).status == STATUS_HIDDEN for cid in ids)


def test_batch_delete_reports_cascaded_replies_as_missing(
    db_session, confession, test_user, admin
) -> None:
    top = create_comment(db_session, author_id=test_user.id, confession_id=confession.id, content="top")
    reply = create_comment(
        db_session,
        author_id=test_user.id,
        confession_id=confession.id,
        content="reply",
        parent_comment_id=top.id,
    )

    result = batch(db_session, "delete", "comment", [top.id, reply.id], moderator=admin)

    assert result.processed == [top.id]
    assert result.missing == [reply.id]
    db_session.refresh(confession)
    assert confession.comments_count == 0


def test_batch_delete_confessions(db_session, make_confession, admin) -> None:
    first = make_confession()
    second = make_confession()

    result = batch(db_session, "delete", "confession", [first.id, second.id], moderator=admin)
    assert result.processed == [first.id, second.id]
    assert db_session.query(Confession).count() == 0


@pytest.mark.parametrize(
    ("action", "entity_type", "ids"),
    [
        ("purge", "comment", [1]),
        ("hide", "user", [1]),
        ("hide", "comment", []),
        ("hide", "comment", list(range(1, 102))),
    ],
)
def test_batch_validation(db_session, admin, action, entity_type, ids) -> None:
    with pytest.raises(ValidationError):
        batch(db_session, action, entity_type, ids, moderator=admin)


def test_moderation_queue(db_session, make_confession, moderator) -> None:
    reported = make_confession(is_reported=True, report_count=2)
    pending = make_confession(status=STATUS_PENDING)
    make_confession()

    assert [item.id for item in moderation_queue(db_session, "confession", reported=True).items] == [
        reported.id
    ]
    queue = moderation_queue(db_session, "confession", status=STATUS_PENDING)
    assert [item.id for item in queue.items] == [pending.id]
    assert queue.total == 1
    assert moderation_queue(db_session, "confession", page_size=100).total == 3
    with pytest.raises(ValidationError):
        moderation_queue(db_session, "confession", status="archived")
