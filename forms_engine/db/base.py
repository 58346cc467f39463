"""SQLAlchemy engine, session factory and the session cache table.

SQLite is the default for local development and tests; any SQLAlchemy URL
works for the ``sql`` cache backend.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Float, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"

# Module-level cached Engine so every backend instance shares one connection pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


class Base(DeclarativeBase):
    pass


class SessionCacheEntry(Base):
    __tablename__ = "form_session_cache"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False)


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs a StaticPool keeps one connection alive across
    sessions and threads.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or DEFAULT_DATABASE_URL

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def create_tables(engine: Engine | None = None) -> None:
    Base.metadata.create_all(engine or get_engine())


def get_sessionmaker(engine: Engine | None = None) -> sessionmaker:
    engine = engine or get_engine()
    return sessionmaker(bind=engine, future=True)


@contextmanager
def session_scope(engine: Engine | None = None) -> Generator:
    """Yield a session that commits on success and rolls back on error."""
    Session = get_sessionmaker(engine)
    session = Session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.error("db_session_error rolled_back=true", exc_info=True)
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "SessionCacheEntry",
    "create_tables",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
