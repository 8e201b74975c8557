"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ladder.db.models import Base
from ladder.players.store import PlayerStore


class FakeClock:
    """Settable stand-in for ladder.weeks.local_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def test_engine():
    """
    Create a fresh in-memory database for each test.

    StaticPool shares the single connection across threads so the
    FastAPI TestClient (which runs sync endpoints in a worker thread)
    sees the same database as the test body.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(
        bind=test_engine,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def db_session(session_factory):
    """
    Create a database session for a test.

    The services commit their own work, so isolation comes from the
    per-test database rather than an outer transaction.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    """Clock pinned to Wednesday 14 Oct 2026, noon (week starts Sunday 11 Oct)."""
    return FakeClock(datetime(2026, 10, 14, 12, 0, 0))


@pytest.fixture
def store(db_session):
    return PlayerStore(db_session, allowed_offices=["chicago", "new york", "tempe"])


@pytest.fixture
def make_player(store):
    """Factory fixture registering players with sensible defaults."""
    counter = {"n": 0}

    def _make(name=None, office="chicago", **kwargs):
        counter["n"] += 1
        return store.register(name or f"Player {counter['n']}", office, **kwargs)

    return _make
