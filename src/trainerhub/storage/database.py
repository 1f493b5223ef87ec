"""
Database wiring (SQLAlchemy).

- `build_engine()` creates an engine from `Settings.database` (relative SQLite paths are
  resolved against the project root; in-memory SQLite shares one connection).
- `get_session()` is the FastAPI dependency: one session per request, always closed.
- `session_scope()` is the CLI/script helper: commit on success, roll back on error.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from trainerhub.config.settings import Settings, get_settings
from trainerhub.core.env import resolve_project_path
from trainerhub.storage.models import Base


def _normalize_url(url: str) -> str:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return url
    database = parsed.database
    if not database or database == ":memory:":
        return url
    return str(parsed.set(database=str(resolve_project_path(database))))


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first DML statement, which breaks SAVEPOINT.
    # Take over transaction control so `Session.begin_nested()` works.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(settings: Settings) -> Engine:
    url = _normalize_url(settings.database.url)
    kwargs: dict = {"echo": settings.database.echo}
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if make_url(url).database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if is_sqlite:
        _enable_sqlite_savepoints(engine)
    return engine


def build_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@lru_cache
def get_engine() -> Engine:
    return build_engine(get_settings())


@lru_cache
def get_sessionmaker() -> sessionmaker[Session]:
    return build_sessionmaker(get_engine())


def init_db(engine: Engine | None = None) -> None:
    """Create all tables (idempotent)."""
    Base.metadata.create_all(bind=engine or get_engine())


def get_session() -> Iterator[Session]:
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    db = (factory or get_sessionmaker())()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
