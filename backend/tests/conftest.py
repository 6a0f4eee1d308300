import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("DATABASE_SERVICE_KEY", "test-service-key")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.api.main import app
from backend.app.db import models
from backend.app.db.session import get_session


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    models.Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = _override_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_session, None)


@pytest.fixture
def seed_analyses(session_factory):
    """Insert analyses given as dicts; created_at may be passed as an hour offset."""

    def _seed(*rows):
        with session_factory() as session:
            for row in rows:
                values = dict(row)
                hour = values.pop("hour", 0)
                values.setdefault("created_at", datetime(2026, 10, 19, hour, tzinfo=timezone.utc))
                values.setdefault("status", models.STATUS_ACTIVE)
                session.add(models.Analysis(**values))
            session.commit()

    return _seed


@pytest.fixture
def stored_ids(session_factory):
    def _ids():
        with session_factory() as session:
            return sorted(session.scalars(select(models.Analysis.id)).all())

    return _ids
