"""
Per-office matchmaking queue.

Players join the queue for their own office. Every join triggers a
pairing check: as soon as two players are waiting in an office, the two
oldest entries (FIFO by joined_at, then id) become a pending match and
leave the queue. Players are never paired across offices.

Join is two units of work:

1. The new queue entry is committed.
2. Pairing creates the match and deletes both entries in one commit.

If pairing fails (for example a waiting player was deactivated), step 2
is rolled back, every entry stays queued and the error propagates to the
caller of join().
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ladder.db.models import Match, QueueEntry
from ladder.errors import AlreadyQueued, OfficeMismatch
from ladder.matches.lifecycle import MatchLifecycle
from ladder.players.store import PlayerStore, normalize_office
from ladder.weeks import Clock, local_now

logger = logging.getLogger(__name__)


@dataclass
class JoinResult:
    """Outcome of a queue join and, if it paired, the new match."""
    player_id: int
    office: str
    joined_at: datetime
    match: Optional[Match] = None

    @property
    def matched(self) -> bool:
        return self.match is not None


class QueueManager:
    """FIFO matchmaking queue, one lane per office."""

    def __init__(
        self,
        db: Session,
        players: Optional[PlayerStore] = None,
        lifecycle: Optional[MatchLifecycle] = None,
        clock: Clock = local_now,
    ):
        self.db = db
        self.clock = clock
        self.players = players or PlayerStore(db)
        self.lifecycle = lifecycle or MatchLifecycle(db, players=self.players, clock=clock)

    def join(self, player_id: int, office: Optional[str] = None) -> JoinResult:
        """
        Put a player in their office's queue and try to pair.

        Args:
            player_id: Player joining
            office: Office lane; defaults to the player's office and must match it

        Raises:
            PlayerNotFound: Player missing or inactive
            OfficeMismatch: office differs from the player's office
            AlreadyQueued: Player already holds a queue entry
            Any MatchLifecycle.create error raised while pairing
        """
        player = self.players.get_active(player_id)
        lane = normalize_office(office) if office else player.office
        if lane != player.office:
            raise OfficeMismatch(player.office, lane)

        if self.is_queued(player.id):
            raise AlreadyQueued(player.id)

        joined_at = self.clock()
        self.db.add(QueueEntry(player_id=player.id, office=lane, joined_at=joined_at))
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent join for the same player
            self.db.rollback()
            raise AlreadyQueued(player.id)

        logger.info("Player %s joined the %s queue", player.id, lane)

        match = self.pairing_check(lane)
        return JoinResult(player_id=player.id, office=lane, joined_at=joined_at, match=match)

    def leave(self, player_id: int) -> bool:
        """Remove a player's queue entry. Returns False if they weren't queued."""
        removed = (
            self.db.query(QueueEntry)
            .filter(QueueEntry.player_id == player_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if removed:
            logger.info("Player %s left the queue", player_id)
        return bool(removed)

    def pairing_check(self, office: str) -> Optional[Match]:
        """
        Pair the two longest-waiting players in an office, if there are two.

        Returns:
            The new match, or None when fewer than two players are waiting
        """
        lane = normalize_office(office)
        waiting = (
            self.db.query(QueueEntry)
            .filter(QueueEntry.office == lane)
            .order_by(QueueEntry.joined_at.asc(), QueueEntry.id.asc())
            .limit(2)
            .with_for_update()
            .all()
        )
        if len(waiting) < 2:
            self.db.commit()
            return None

        first, second = waiting
        try:
            match = self.lifecycle.create(first.player_id, second.player_id, commit=False)
            self.db.delete(first)
            self.db.delete(second)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(
                "Pairing failed in %s for players %s and %s; both stay queued",
                lane, first.player_id, second.player_id,
            )
            raise

        logger.info(
            "Paired players %s and %s in %s as match %s",
            match.player1_id, match.player2_id, lane, match.id,
        )
        return match

    # =========================================================================
    # Queries
    # =========================================================================

    def is_queued(self, player_id: int) -> bool:
        return (
            self.db.query(QueueEntry.id).filter(QueueEntry.player_id == player_id).first()
            is not None
        )

    def entries(self, office: str) -> list[QueueEntry]:
        """Current queue for an office, oldest first, with players loaded."""
        return (
            self.db.query(QueueEntry)
            .options(joinedload(QueueEntry.player))
            .filter(QueueEntry.office == normalize_office(office))
            .order_by(QueueEntry.joined_at.asc(), QueueEntry.id.asc())
            .all()
        )
