"""Tests for user statistics and board aggregates."""

import pytest

from confession_board.core.errors import NotFound, ValidationError
from confession_board.models.constants import STATUS_HIDDEN, STATUS_PENDING, USER_BANNED
from confession_board.services.confessions import create_confession
from confession_board.services.stats import board_stats, leaderboard, user_stats, vote_history
from confession_board.services.votes import cast_vote

CONTENT = "I borrowed my roommate's bike and scratched it."


def test_vote_stat_counts_added_votes_only(db_session, make_confession, test_user) -> None:
    first = make_confession()
    second = make_confession()

    cast_vote(db_session, user_id=test_user.id, confession_id=first.id, vote_type="heaven")
    cast_vote(db_session, user_id=test_user.id, confession_id=first.id, vote_type="hell")
    cast_vote(db_session, user_id=test_user.id, confession_id=first.id, vote_type="hell")
    cast_vote(db_session, user_id=test_user.id, confession_id=second.id, vote_type="hell")

    db_session.refresh(test_user)
    assert test_user.votes_count == 2


def test_user_stats_recomputed_from_records(db_session, confession, test_user, make_comment) -> None:
    create_confession(db_session, author_id=test_user.id, content=CONTENT, is_anonymous=False)
    cast_vote(db_session, user_id=test_user.id, confession_id=confession.id, vote_type="heaven")
    make_comment(confession, test_user)

    assert user_stats(db_session, test_user.id) == {
        "confessions_count": 1,
        "votes_count": 1,
        "comments_count": 1,
        "reputation": 10,
    }
    with pytest.raises(NotFound):
        user_stats(db_session, 9999)


def test_board_stats(db_session, make_confession, make_user, make_comment) -> None:
    author = make_user()
    visible = make_confession(views_count=4)
    make_confession(status=STATUS_PENDING)
    cast_vote(db_session, user_id=author.id, confession_id=visible.id, vote_type="heaven")
    cast_vote(db_session, user_id=make_user().id, confession_id=visible.id, vote_type="hell")
    make_comment(visible, author)
    make_comment(visible, author, status=STATUS_HIDDEN)

    stats = board_stats(db_session)

    assert stats["users"] == {"total": 2, "active": 2}
    assert stats["confessions"]["approved"] == 1
    assert stats["confessions"]["pending"] == 1
    assert stats["confessions"]["total"] == 2
    assert stats["confessions"]["total_votes"] == 2
    assert stats["confessions"]["total_views"] == 4
    assert stats["votes"] == {"total": 2, "heaven": 1, "hell": 1}
    assert stats["comments"]["approved"] == 1
    assert stats["comments"]["hidden"] == 1
    assert stats["comments"]["total"] == 2


def test_leaderboard(db_session, make_user) -> None:
    low = make_user(reputation=5)
    high = make_user(reputation=50)
    make_user(reputation=500, status=USER_BANNED)
    mid = make_user(votes_count=3)

    assert [user.id for user in leaderboard(db_session)] == [high.id, mid.id, low.id]
    assert leaderboard(db_session, "votes", limit=1)[0].id == mid.id
    with pytest.raises(ValidationError):
        leaderboard(db_session, "karma")
    with pytest.raises(ValidationError):
        leaderboard(db_session, limit=0)


def test_vote_history_newest_first(db_session, make_confession, test_user) -> None:
    confessions = [make_confession() for _ in range(3)]
    for confession in confessions:
        cast_vote(db_session, user_id=test_user.id, confession_id=confession.id, vote_type="heaven")

    page = vote_history(db_session, test_user.id, 1, 2)
    assert [vote.confession_id for vote in page.items] == [confessions[2].id, confessions[1].id]
    assert page.total == 3
