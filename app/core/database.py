"""Database engine and session management."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings


def _ensure_sqlite_directory(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme != "sqlite" or parsed.path in ("", ":memory:", "/:memory:"):
        return
    # sqlite:///./data/homekrypto.db parses to path "/./data/homekrypto.db"
    raw_path = parsed.path[1:] if parsed.path.startswith("/./") else parsed.path
    Path(raw_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs get thread-safe, in-memory friendly options."""

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, future=True, echo=echo, pool_pre_ping=True)

    _ensure_sqlite_directory(database_url)
    engine_kwargs: dict[str, object] = {
        "future": True,
        "echo": echo,
        "connect_args": {"check_same_thread": False},
    }
    if database_url.endswith(":memory:") or database_url == "sqlite://":
        engine_kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **engine_kwargs)


_settings = get_settings()
engine: Engine = build_engine(_settings.database_url, echo=_settings.sql_echo)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    future=True,
    class_=Session,
)


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding a request-scoped session."""

    with session_scope() as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Transactional scope: commit on success, roll back on error."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
