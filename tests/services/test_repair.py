"""Tests for counter drift repair."""

import asyncio
import threading

import pytest
from sqlalchemy import update

from confession_board.models import Comment, Confession, Vote
from confession_board.services.repair import CounterRepairWorker, repair_counters


def _drift(db_session, confession, comment) -> None:
    db_session.execute(
        update(Confession).where(Confession.id == confession.id).values(heaven_votes=9, comments_count=0)
    )
    db_session.execute(update(Comment).where(Comment.id == comment.id).values(replies_count=4))
    db_session.commit()


def test_repair_counters_fixes_drift(db_session, make_confession, test_user, make_comment) -> None:
    confession = make_confession()
    untouched = make_confession()
    parent = make_comment(confession, test_user)
    db_session.add(Vote(user_id=test_user.id, confession_id=confession.id, type="hell"))
    db_session.commit()
    _drift(db_session, confession, parent)

    report = repair_counters(db_session)

    assert report.confessions_checked == 2
    assert report.confessions_fixed == 1
    assert report.comments_checked == 1
    assert report.comments_fixed == 1
    db_session.refresh(confession)
    db_session.refresh(parent)
    db_session.refresh(untouched)
    assert confession.votes == {"heaven": 0, "hell": 1}
    assert confession.comments_count == 1
    assert parent.replies_count == 0
    assert untouched.votes == {"heaven": 0, "hell": 0}

    assert repair_counters(db_session).confessions_fixed == 0


@pytest.mark.asyncio
async def test_worker_runs_repair_until_stopped(
    database, db_session, make_confession, test_user, make_comment, mocker
) -> None:
    confession = make_confession()
    parent = make_comment(confession, test_user)
    _drift(db_session, confession, parent)

    worker = CounterRepairWorker(database, interval_seconds=60)
    finished = threading.Event()
    repair_once = worker._repair_once

    def _tracked():
        try:
            return repair_once()
        finally:
            finished.set()

    mocker.patch.object(worker, "_repair_once", side_effect=_tracked)
    await worker.start()
    assert await asyncio.to_thread(finished.wait, 5)
    await worker.stop()

    db_session.expire_all()
    assert db_session.get(Confession, confession.id).votes == {"heaven": 0, "hell": 0}
    assert db_session.get(Confession, confession.id).comments_count == 1
    assert db_session.get(Comment, parent.id).replies_count == 0


@pytest.mark.asyncio
async def test_worker_stop_without_start_is_noop(database) -> None:
    await CounterRepairWorker(database, interval_seconds=1).stop()
