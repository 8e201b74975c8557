"""
Database session management for Office Ladder.

Provides SQLAlchemy engine and session factory configured from config.py.

Usage:
    # As a context manager (recommended for scripts)
    from ladder.db import get_session

    with get_session() as session:
        players = session.query(Player).all()
        session.add(new_player)
        # Commits automatically on exit, rolls back on exception

    # As a dependency injection (for FastAPI)
    from ladder.db.session import get_db

    @app.get("/api/players")
    def list_players(db: Session = Depends(get_db)):
        ...
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ladder.config import settings


def get_engine(database_url: str | None = None) -> Engine:
    """
    Create SQLAlchemy engine for the configured database.

    The engine is configured with:
    - Connection pool sizes from settings (server databases only)
    - Echo mode disabled (set LOG_LEVEL=DEBUG for SQL logging)
    - Pre-ping to verify connections before use (handles stale connections)
    - Foreign key enforcement on SQLite
    """
    url = database_url or settings.database_url
    echo = settings.log_level == "DEBUG"

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

        @event.listens_for(engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            """SQLite leaves foreign keys off unless asked per connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=echo,
    )


# Create the engine (singleton pattern via module-level variable)
_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - creates new sessions bound to our engine.
# expire_on_commit=False keeps returned models readable after the services
# commit their unit of work.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=_get_engine(),
)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    This is the recommended way to use sessions in scripts.

    Example:
        with get_session() as session:
            store = PlayerStore(session)
            store.register("Alice", "chicago")

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Use this with FastAPI's Depends() for request-scoped sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
