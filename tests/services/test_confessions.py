"""Tests for the confession lifecycle service."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from confession_board.core.errors import Forbidden, Gone, NotFound, ValidationError
from confession_board.db.time import as_utc, utcnow
from confession_board.models import Comment, Confession, ConfessionTag, Vote
from confession_board.models.constants import STATUS_PENDING
from confession_board.services import reconciliation
from confession_board.services.confessions import (
    create_confession,
    delete_confession,
    get_confession,
    list_featured,
    normalize_tags,
    report_confession,
    share_confession,
)
from confession_board.services.votes import cast_vote

CONTENT = "I told my boss the report was done when it was not."


def _count(db_session, model, column, value) -> int:
    return db_session.execute(
        select(func.count()).select_from(model).where(column == value)
    ).scalar_one()


def test_create_confession_defaults(db_session, test_user) -> None:
    now = utcnow()
    confession = create_confession(db_session, author_id=test_user.id, content=CONTENT, now=now)

    assert confession.status == "approved"
    assert confession.category == "other"
    assert confession.is_anonymous is True
    assert confession.author_id is None
    assert as_utc(confession.expires_at) == now + timedelta(days=30)
    assert confession.votes == {"heaven": 0, "hell": 0}


def test_named_confession_records_author_stats(db_session, test_user) -> None:
    confession = create_confession(
        db_session,
        author_id=test_user.id,
        content=CONTENT,
        title="  Guilty  ",
        category="work",
        is_anonymous=False,
    )

    db_session.refresh(test_user)
    assert confession.author_id == test_user.id
    assert confession.title == "Guilty"
    assert test_user.confessions_count == 1


def test_tags_are_normalized() -> None:
    assert normalize_tags([" Work ", "work", "", "LIES"]) == ["work", "lies"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": "too short"},
        {"content": "x" * 2001},
        {"content": CONTENT, "title": "t" * 101},
        {"content": CONTENT, "tags": ["a", "b", "c", "d", "e", "f"]},
        {"content": CONTENT, "tags": ["x" * 21]},
        {"content": CONTENT, "category": "gossip"},
    ],
)
def test_create_confession_validation(db_session, kwargs) -> None:
    with pytest.raises(ValidationError):
        create_confession(db_session, author_id=None, **kwargs)
    assert db_session.execute(select(func.count()).select_from(Confession)).scalar_one() == 0


def test_create_confession_stores_tags_in_order(db_session) -> None:
    confession = create_confession(
        db_session, author_id=None, content=CONTENT, tags=["Office", "boss", "office"]
    )
    assert confession.tags == ["office", "boss"]


def test_get_confession_counts_view_and_returns_vote(db_session, confession, test_user) -> None:
    cast_vote(db_session, user_id=test_user.id, confession_id=confession.id, vote_type="hell")

    loaded, user_vote = get_confession(db_session, confession.id, viewer_id=test_user.id)
    assert loaded.views_count == 1
    assert user_vote == "hell"

    loaded, user_vote = get_confession(db_session, confession.id)
    assert loaded.views_count == 2
    assert user_vote is None


def test_get_confession_rejects_closed(db_session, make_confession) -> None:
    pending = make_confession(status=STATUS_PENDING)
    expired = make_confession(expires_at=utcnow() - timedelta(days=1))

    with pytest.raises(Forbidden):
        get_confession(db_session, pending.id)
    with pytest.raises(Gone):
        get_confession(db_session, expired.id)
    with pytest.raises(NotFound):
        get_confession(db_session, 31337)


def test_share_increments(db_session, confession) -> None:
    assert share_confession(db_session, confession.id) == 1
    assert share_confession(db_session, confession.id) == 2
    with pytest.raises(NotFound):
        share_confession(db_session, 31337)


def test_report_confession(db_session, confession) -> None:
    reported = report_confession(db_session, confession.id, "spam", "buy now")
    assert reported.is_reported is True
    assert reported.report_count == 1
    assert reported.moderation_reason == "spam: buy now"

    with pytest.raises(ValidationError):
        report_confession(db_session, confession.id, "boring")
    with pytest.raises(ValidationError):
        report_confession(db_session, confession.id, "other", "x" * 201)


def test_list_featured_only_visible(db_session, make_confession) -> None:
    now = utcnow()
    older = make_confession(featured=True, featured_at=now - timedelta(hours=2))
    newer = make_confession(featured=True, featured_at=now - timedelta(hours=1))
    make_confession(featured=True, featured_at=now, status=STATUS_PENDING)
    make_confession()

    assert [item.id for item in list_featured(db_session, now=now)] == [newer.id, older.id]


def test_delete_cascades_votes_and_comments(
    db_session, make_confession, make_user, make_comment, admin
) -> None:
    confession = make_confession(tags=["cake"])
    voter = make_user()
    cast_vote(db_session, user_id=voter.id, confession_id=confession.id, vote_type="heaven")
    parent = make_comment(confession, voter)
    make_comment(confession, voter, parent=parent)
    confession_id = confession.id

    delete_confession(db_session, confession_id, admin)

    assert db_session.get(Confession, confession_id) is None
    assert _count(db_session, Vote, Vote.confession_id, confession_id) == 0
    assert _count(db_session, Comment, Comment.confession_id, confession_id) == 0
    assert _count(db_session, ConfessionTag, ConfessionTag.confession_id, confession_id) == 0
    assert reconciliation.after_vote_write(db_session, confession_id) is False
    with pytest.raises(NotFound):
        reconciliation.reconcile_confession_votes(db_session, confession_id)


def test_only_owner_or_admin_may_delete(db_session, test_user, other_user, moderator) -> None:
    confession = create_confession(
        db_session, author_id=test_user.id, content=CONTENT, is_anonymous=False
    )

    for actor in (other_user, moderator):
        with pytest.raises(Forbidden):
            delete_confession(db_session, confession.id, actor)

    delete_confession(db_session, confession.id, test_user)
    assert db_session.get(Confession, confession.id) is None
