from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.config import settings

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(url: str, echo: bool = False) -> Engine:
    """Engine for *url*; SQLite connections are shared by API worker threads and the PR job.

    An in-memory SQLite database exists per connection, so it is pinned to a
    single shared connection.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)
    if url in _MEMORY_URLS:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(url, connect_args={"check_same_thread": False}, echo=echo)


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
SessionLocal: sessionmaker[Session] = build_session_factory(engine)


@contextmanager
def get_session(factory: Optional[sessionmaker[Session]] = None) -> Generator[Session, None, None]:
    """Unit of work: commit on success, roll back on any error."""
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
