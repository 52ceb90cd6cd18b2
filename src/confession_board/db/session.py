"""Database session configuration.

The persistence handle is an explicit object: the application opens it at
startup, closes it at shutdown and hands sessions out per request.
"""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def _unicode_lower(value: str | None) -> str | None:
    return value.lower() if value is not None else None


def _register_sqlite_functions(dbapi_conn, connection_record) -> None:
    # SQLite's builtin lower() only folds ASCII; match Python's str.lower().
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


class Database:
    """Owns the SQLAlchemy engine and session factory for one store."""

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: object) -> None:
        self.url = url
        self._echo = echo
        self._engine_kwargs = engine_kwargs
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self, *, create_tables: bool = False) -> None:
        """Create the engine and optionally the schema."""
        if self._engine is not None:
            return
        if self.url.startswith("sqlite"):
            self._engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        self._engine = create_engine(
            self.url,
            pool_pre_ping=True,
            echo=self._echo,
            **self._engine_kwargs,
        )
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine, "connect", _register_sqlite_functions)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self._engine,
        )
        if create_tables:
            self.create_tables()

    def close(self) -> None:
        """Dispose of pooled connections."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def session(self) -> Session:
        """Return a new session bound to this store."""
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


# Ensure model modules are imported so that metadata is populated when create_all runs.
import confession_board.models  # noqa: E402,F401
