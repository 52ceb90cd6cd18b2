"""Drift repair for denormalized counters.

Reconciliation normally runs right after each write. A write whose trigger
never ran (cancelled request, storage hiccup) leaves a stale counter; this
module walks every aggregate and recomputes it from source.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from confession_board.core.errors import NotFound
from confession_board.db.session import Database
from confession_board.models import Comment, Confession

from .reconciliation import (
    reconcile_comment_count,
    reconcile_confession_votes,
    reconcile_reply_count,
)

logger = logging.getLogger(__name__)


@dataclass
class RepairReport:
    """Counts of aggregates inspected and corrected by one repair pass."""

    confessions_checked: int = 0
    confessions_fixed: int = 0
    comments_checked: int = 0
    comments_fixed: int = 0


def repair_counters(db: Session) -> RepairReport:
    """Recompute every confession and comment counter, reporting drift."""
    report = RepairReport()

    rows = db.execute(
        select(Confession.id, Confession.heaven_votes, Confession.hell_votes, Confession.comments_count)
    ).all()
    for confession_id, heaven, hell, comments in rows:
        report.confessions_checked += 1
        try:
            votes = reconcile_confession_votes(db, confession_id)
            comment_total = reconcile_comment_count(db, confession_id)
            db.commit()
        except NotFound:
            db.rollback()
            continue
        if (votes["heaven"], votes["hell"], comment_total) != (heaven, hell, comments):
            report.confessions_fixed += 1
            logger.warning(
                "Repaired counters for confession %s: votes %s/%s -> %s/%s, comments %s -> %s",
                confession_id,
                heaven,
                hell,
                votes["heaven"],
                votes["hell"],
                comments,
                comment_total,
            )

    for comment_id, replies in db.execute(select(Comment.id, Comment.replies_count)).all():
        report.comments_checked += 1
        try:
            reply_total = reconcile_reply_count(db, comment_id)
            db.commit()
        except NotFound:
            db.rollback()
            continue
        if reply_total != replies:
            report.comments_fixed += 1
            logger.warning(
                "Repaired reply count for comment %s: %s -> %s", comment_id, replies, reply_total
            )
    return report


class CounterRepairWorker:
    """Periodically runs :func:`repair_counters` in a background task."""

    def __init__(self, database: Database, interval_seconds: float) -> None:
        self.database = database
        self.interval = max(1.0, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background repair loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background repair loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    def _repair_once(self) -> RepairReport:
        with self.database.session() as db:
            return repair_counters(db)

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                report = await asyncio.to_thread(self._repair_once)
            except SQLAlchemyError as exc:
                logger.error("Counter repair pass failed: %s", exc, exc_info=True)
            else:
                if report.confessions_fixed or report.comments_fixed:
                    logger.info(
                        "Counter repair fixed %d confessions and %d comments",
                        report.confessions_fixed,
                        report.comments_fixed,
                    )
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue
