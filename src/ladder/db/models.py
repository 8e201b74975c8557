"""
SQLAlchemy ORM models for Office Ladder.

This module defines all database tables and their relationships.

Key design decisions:
- Players are soft-deleted (is_active) because matches keep referencing them
- A player can hold at most one queue entry (unique player_id)
- Matches store the week they count toward (week_start) at creation time
- Prizes are unique per (player, prize_type, week_start); the prize engine
  checks before inserting and treats a constraint violation as "already
  awarded"

Tables:
- players: Registered players
- queue_entries: Per-office matchmaking queue
- matches: All matches (pending, completed, cancelled)
- prizes: Weekly prizes awarded to players

Timestamps are naive office-local times, matching the prize-week
arithmetic in ladder.weeks.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ladder.weeks import local_now


# =============================================================================
# Constants
# =============================================================================

PRIZE_THREE_WINS = "three_wins"
PRIZE_THREE_LOSSES = "three_losses"

PRIZE_TYPES: tuple[str, ...] = (PRIZE_THREE_WINS, PRIZE_THREE_LOSSES)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Player Models
# =============================================================================

class Player(Base):
    """
    Registered ladder player.

    Players belong to exactly one office and can only be matched against
    players from the same office. chat_user_id links the player to their
    chat account for slash commands.

    Players are never hard-deleted while matches reference them; clearing
    is_active removes them from queues, leaderboards and new matches.
    """
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    chat_user_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)

    # Lower-case location tag ('chicago', 'new york', ...)
    office: Mapped[str] = mapped_column(String(100), nullable=False)

    # Opaque reference to an avatar asset (URL or storage key)
    avatar_ref: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="1",
    )

    joined_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=local_now, onupdate=local_now, nullable=False
    )

    prizes: Mapped[list["Prize"]] = relationship(back_populates="player")

    __table_args__ = (
        Index("idx_players_office_active", "office", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, name='{self.name}', office='{self.office}')>"


# =============================================================================
# Matchmaking Queue
# =============================================================================

class QueueEntry(Base):
    """
    A player's ticket in their office's matchmaking queue.

    Entries are paired oldest-first (joined_at, then id). An entry is
    deleted when the player leaves or when it is paired into a match.
    """
    __tablename__ = "queue_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id"), nullable=False, unique=True
    )
    office: Mapped[str] = mapped_column(String(100), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)

    player: Mapped["Player"] = relationship()

    __table_args__ = (
        Index("idx_queue_entries_office_joined", "office", "joined_at"),
    )

    def __repr__(self) -> str:
        return f"<QueueEntry(player_id={self.player_id}, office='{self.office}')>"


# =============================================================================
# Match Models
# =============================================================================

class Match(Base):
    """
    A single game between two players from the same office.

    Match status lifecycle (see ladder.match_statuses):
    - 'pending': Created by queue pairing or a direct challenge
    - 'completed': Result reported, winner_id set
    - 'cancelled': Withdrawn before a result was reported

    Only pending matches change; completed and cancelled are final.
    winner_id is set if and only if the status is 'completed'.

    week_start is the Sunday of the week the match was created in. It
    decides which prize week the match counts toward, even if the result
    is reported after the week rolls over.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)

    player1_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    player2_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("players.id"), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    week_start: Mapped[date] = mapped_column(Date, nullable=False)

    # Player who submitted the result (not necessarily a participant)
    reported_by: Mapped[Optional[int]] = mapped_column(ForeignKey("players.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    player1: Mapped["Player"] = relationship(foreign_keys=[player1_id])
    player2: Mapped["Player"] = relationship(foreign_keys=[player2_id])
    winner: Mapped[Optional["Player"]] = relationship(foreign_keys=[winner_id])

    __table_args__ = (
        CheckConstraint("player1_id <> player2_id", name="ck_matches_distinct_players"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_matches_status",
        ),
        CheckConstraint(
            "(status = 'completed') = (winner_id IS NOT NULL)",
            name="ck_matches_winner_iff_completed",
        ),
        # Weekly stats query: player + week + status
        Index("idx_matches_p1_week_status", "player1_id", "week_start", "status"),
        Index("idx_matches_p2_week_status", "player2_id", "week_start", "status"),
        Index("idx_matches_status_created", "status", "created_at"),
    )

    @property
    def player_ids(self) -> tuple[int, int]:
        return (self.player1_id, self.player2_id)

    def involves(self, player_id: int) -> bool:
        return player_id in self.player_ids

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, {self.player1_id} vs {self.player2_id}, "
            f"status='{self.status}')>"
        )


# =============================================================================
# Prize Models
# =============================================================================

class Prize(Base):
    """
    Weekly prize earned by a player.

    Prize types:
    - 'three_wins': Won 3 matches in one week
    - 'three_losses': Lost 3 matches in one week (consolation)

    Only the claimed flag changes after creation.
    """
    __tablename__ = "prizes"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    prize_type: Mapped[str] = mapped_column(String(30), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)
    claimed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
    )

    player: Mapped["Player"] = relationship(back_populates="prizes")

    __table_args__ = (
        UniqueConstraint("player_id", "prize_type", "week_start", name="uq_prize_player_type_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<Prize(player_id={self.player_id}, type='{self.prize_type}', "
            f"week={self.week_start})>"
        )
