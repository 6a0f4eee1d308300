from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from backend.app.core.settings import Settings, require_store_settings, settings


def build_engine(config: Settings) -> Engine:
    """Create the process-wide engine, failing fast on missing configuration."""
    database_url, service_key = require_store_settings(config)
    url = make_url(database_url)
    # Network stores authenticate with the service key; file-backed ones take no password.
    if url.host:
        url = url.set(password=service_key)
    return create_engine(url, future=True, echo=False, pool_pre_ping=True)


ENGINE = build_engine(settings)

SessionLocal = sessionmaker(bind=ENGINE, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
