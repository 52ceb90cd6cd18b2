# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from confession_board.api.v1.dependencies import get_rate_limiter_dep
from confession_board.core.security import create_access_token
from confession_board.db.session import Database
from confession_board.db.session import get_db as app_get_session
from confession_board.db.time import utcnow
from confession_board.main import app as fastapi_app
from confession_board.models import Comment, Confession, ConfessionTag, User
from confession_board.models.constants import (
    ROLE_ADMIN,
    ROLE_MODERATOR,
    ROLE_USER,
    STATUS_APPROVED,
    USER_ACTIVE,
)
from confession_board.services.rate_limit import RateLimiter

TEST_DB_URL = "sqlite://"

_USERNAME_COUNTER = count(1)


@pytest.fixture()
def database() -> Iterator[Database]:
    database = Database(TEST_DB_URL, poolclass=StaticPool)
    database.open(create_tables=True)
    try:
        yield database
    finally:
        database.close()


@pytest.fixture()
def db_session(database: Database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def rate_limiter() -> RateLimiter:
    """In-process limiter so tests never reach Redis."""
    return RateLimiter(None, enabled=True)


@pytest.fixture()
def app(database: Database, db_session: Session, rate_limiter: RateLimiter) -> Iterator[FastAPI]:
    def _get_session_override() -> Iterator[Session]:
        yield db_session

    fastapi_app.state.database = database
    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    fastapi_app.dependency_overrides[get_rate_limiter_dep] = lambda: rate_limiter
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()
        fastapi_app.state.database = None


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users."""

    def _make_user(
        username: str | None = None,
        *,
        role: str = ROLE_USER,
        status: str = USER_ACTIVE,
        **fields: Any,
    ) -> User:
        user = User(
            username=username or f"user{next(_USERNAME_COUNTER)}",
            role=role,
            status=status,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user("mod", role=ROLE_MODERATOR)


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("root", role=ROLE_ADMIN)


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper that builds authorization headers for any user."""
    return _bearer


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return _bearer(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return _bearer(other_user)


@pytest.fixture()
def make_confession(db_session: Session) -> Callable[..., Confession]:
    """Return a factory that inserts confessions directly, bypassing validation."""

    def _make_confession(
        content: str = "I ate the last slice of cake and blamed the dog.",
        *,
        title: str | None = None,
        status: str = STATUS_APPROVED,
        created_at: datetime | None = None,
        expires_at: datetime | None = None,
        tags: list[str] | None = None,
        **fields: Any,
    ) -> Confession:
        created = created_at or utcnow()
        confession = Confession(
            title=title,
            content=content,
            status=status,
            created_at=created,
            updated_at=created,
            expires_at=expires_at if expires_at is not None else created + timedelta(days=30),
            tag_rows=[
                ConfessionTag(tag=tag, position=position)
                for position, tag in enumerate(tags or [])
            ],
            **fields,
        )
        db_session.add(confession)
        db_session.commit()
        db_session.refresh(confession)
        return confession

    return _make_confession


@pytest.fixture()
def confession(make_confession: Callable[..., Confession]) -> Confession:
    return make_confession()


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    """Return a factory that inserts comments without touching counters."""

    def _make_comment(
        confession: Confession,
        author: User,
        content: str = "Same here",
        *,
        parent: Comment | None = None,
        status: str = STATUS_APPROVED,
        created_at: datetime | None = None,
        **fields: Any,
    ) -> Comment:
        created = created_at or utcnow()
        comment = Comment(
            content=content,
            author_id=author.id,
            confession_id=confession.id,
            parent_comment_id=parent.id if parent else None,
            status=status,
            created_at=created,
            updated_at=created,
            **fields,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment
