"""Tests for confession listing, filtering and search."""

from datetime import timedelta

import pytest

from confession_board.core.errors import ValidationError
from confession_board.db.time import utcnow
from confession_board.models.constants import STATUS_HIDDEN, STATUS_PENDING
from confession_board.services.ranking import rank_hot
from confession_board.services.search import (
    list_hot,
    search_comments,
    search_confessions,
    split_terms,
)


def _ids(page) -> list[int]:
    return [item.id for item in page.items]


def test_only_visible_confessions_are_listed(db_session, make_confession) -> None:
    visible = make_confession()
    never_expires = make_confession()
    never_expires.expires_at = None
    db_session.commit()
    make_confession(status=STATUS_PENDING)
    make_confession(status=STATUS_HIDDEN)
    make_confession(expires_at=utcnow() - timedelta(hours=1))

    page = search_confessions(db_session)
    assert sorted(_ids(page)) == sorted([visible.id, never_expires.id])
    assert page.total == 2


def test_latest_breaks_ties_by_id(db_session, make_confession) -> None:
    now = utcnow()
    first = make_confession(created_at=now)
    second = make_confession(created_at=now)
    older = make_confession(created_at=now - timedelta(minutes=5))

    assert _ids(search_confessions(db_session, now=now)) == [second.id, first.id, older.id]


def test_votes_sort_uses_total_then_heaven(db_session, make_confession) -> None:
    now = utcnow()
    hellish = make_confession(created_at=now, heaven_votes=1, hell_votes=4)
    heavenly = make_confession(created_at=now - timedelta(hours=1), heaven_votes=4, hell_votes=1)
    quiet = make_confession(created_at=now, heaven_votes=1)

    page = search_confessions(db_session, sort="votes", now=now)
    assert _ids(page) == [heavenly.id, hellish.id, quiet.id]


def test_comments_sort(db_session, make_confession) -> None:
    busy = make_confession(comments_count=8)
    make_confession(comments_count=1)

    assert _ids(search_confessions(db_session, sort="comments"))[0] == busy.id


def test_hot_sort_matches_list_hot(db_session, make_confession) -> None:
    now = utcnow()
    make_confession(created_at=now - timedelta(days=3), heaven_votes=30)
    trending = make_confession(created_at=now - timedelta(hours=1), heaven_votes=10, views_count=50)

    hot = search_confessions(db_session, sort="hot", now=now)
    assert _ids(hot)[0] == trending.id
    assert _ids(list_hot(db_session, now=now)) == _ids(hot)


def test_hot_sort_agrees_with_rank_hot_on_ties(db_session, make_confession) -> None:
    now = utcnow()
    created = now - timedelta(hours=2)
    same_time = [make_confession(created_at=created, heaven_votes=4) for _ in range(3)]
    newer = make_confession(created_at=now - timedelta(hours=1), heaven_votes=1)
    candidates = [*same_time, newer]

    expected = [item.id for item in rank_hot(candidates, now)]
    assert _ids(search_confessions(db_session, sort="hot", now=now)) == expected
    assert expected[:3] == [item.id for item in reversed(same_time)]


def test_category_and_tag_filters(db_session, make_confession) -> None:
    work = make_confession(category="work", tags=["boss"])
    family = make_confession(category="family", tags=["mom", "boss"])
    make_confession(category="family", tags=["dad"])

    assert _ids(search_confessions(db_session, category="work")) == [work.id]
    assert sorted(_ids(search_confessions(db_session, tags=["BOSS "]))) == sorted([work.id, family.id])
    assert len(search_confessions(db_session, tags=["mom", "dad"]).items) == 2
    with pytest.raises(ValidationError):
        search_confessions(db_session, category="gossip")


def test_featured_filter(db_session, make_confession) -> None:
    featured = make_confession(featured=True)
    make_confession()

    assert _ids(search_confessions(db_session, featured=True)) == [featured.id]


def test_text_search_ranks_title_above_content(db_session, make_confession) -> None:
    now = utcnow()
    in_content = make_confession("I secretly love pineapple pizza.", created_at=now)
    in_title = make_confession(
        "Nobody at home knows this about me.",
        title="Pineapple confession",
        created_at=now - timedelta(days=1),
    )
    in_tag = make_confession("Completely unrelated text here.", tags=["pineapple"], created_at=now)
    make_confession("Nothing to see here at all.")

    page = search_confessions(db_session, text="PINEAPPLE", now=now)
    assert _ids(page) == [in_title.id, in_content.id, in_tag.id]


def test_text_search_matches_any_term(db_session, make_confession) -> None:
    cats = make_confession("I adopted three cats without asking.")
    dogs = make_confession("I gave the dog my vegetables.")
    make_confession("I ate the birthday cake early.")

    page = search_confessions(db_session, text="cats dog")
    assert sorted(_ids(page)) == sorted([cats.id, dogs.id])


def test_text_search_escapes_wildcards(db_session, make_confession) -> None:
    literal = make_confession("I only gave 100% on the last day.")
    make_confession("I gave 1000 excuses today, sorry.")

    assert _ids(search_confessions(db_session, text="100%")) == [literal.id]


def test_query_validation(db_session) -> None:
    assert split_terms("  ") == []
    assert split_terms("Cat cat DOG") == ["cat", "dog"]
    with pytest.raises(ValidationError):
        split_terms("x" * 101)
    assert len(split_terms(" ".join(f"t{i}" for i in range(10)))) == 10
    with pytest.raises(ValidationError):
        split_terms(" ".join(f"t{i}" for i in range(11)))
    with pytest.raises(ValidationError):
        search_confessions(db_session, sort="random")


def test_pagination(db_session, make_confession) -> None:
    now = utcnow()
    created = [make_confession(created_at=now - timedelta(minutes=i)) for i in range(5)]

    page = search_confessions(db_session, page=2, page_size=2, now=now)
    assert _ids(page) == [created[2].id, created[3].id]
    assert page.total == 5
    assert page.pages == 3
    assert page.has_more

    with pytest.raises(ValidationError):
        search_confessions(db_session, page_size=51)
    with pytest.raises(ValidationError):
        search_confessions(db_session, page=0)


def test_search_comments(db_session, make_confession, test_user, other_user, make_comment) -> None:
    confession = make_confession()
    both = make_comment(confession, test_user, "Same cake, same dog")
    one = make_comment(confession, other_user, "my dog did it")
    make_comment(confession, test_user, "dog hidden", status=STATUS_HIDDEN)
    make_comment(confession, test_user, "unrelated")

    page = search_comments(db_session, "cake dog")
    assert _ids(page) == [both.id, one.id]
    assert _ids(search_comments(db_session, "dog", author_id=other_user.id)) == [one.id]
    with pytest.raises(ValidationError):
        search_comments(db_session, "   ")


def test_text_search_matches_non_ascii_text(db_session, make_confession) -> None:
    russian = make_confession("Привет, я соврал начальнику про отпуск.")
    german = make_confession("Ärger mit dem Chef, weil ich Straße falsch schrieb.")
    make_confession("Nothing to see here.")

    assert _ids(search_confessions(db_session, text="Привет")) == [russian.id]
    assert _ids(search_confessions(db_session, text="привет")) == [russian.id]
    assert _ids(search_confessions(db_session, text="ÄRGER")) == [german.id]
    assert _ids(search_confessions(db_session, text="straße")) == [german.id]


def test_search_comments_matches_non_ascii_text(
    db_session, make_confession, test_user, make_comment
) -> None:
    confession = make_confession()
    match = make_comment(confession, test_user, "Ärger überall, Привет всем")
    make_comment(confession, test_user, "plain ascii")

    assert _ids(search_comments(db_session, "ärger")) == [match.id]
    assert _ids(search_comments(db_session, "ПРИВЕТ")) == [match.id]
