"""
Database module for Office Ladder.

Provides SQLAlchemy ORM models and session management.

Usage:
    from ladder.db import get_session, Player, Match

    with get_session() as session:
        players = session.query(Player).all()
"""

from ladder.db.models import (
    Base,
    Match,
    Player,
    Prize,
    QueueEntry,
)
from ladder.db.session import get_session, get_engine, SessionLocal

__all__ = [
    # Base
    "Base",
    # Models
    "Player",
    "QueueEntry",
    "Match",
    "Prize",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
