"""
Match lifecycle service.

A match starts 'pending' and moves exactly once, to 'completed' (report)
or 'cancelled' (cancel). Completed and cancelled matches never change
again, so a second report on the same match always fails with
MatchNotPending and leaves the original winner in place.

Reporting is split into two commits:

1. The result (winner, status, completed_at) is committed.
2. PrizeEngine.evaluate runs for the winner against the match's week.

If step 2 fails the match stays completed and PrizeEvaluationError is
raised with the completed match attached. The report must not be retried;
PrizeEngine.reconcile_week awards anything that was missed.

Usage:
    lifecycle = MatchLifecycle(db_session)
    match = lifecycle.create(alice.id, bob.id)
    result = lifecycle.report(match.id, winner_id=alice.id)
    if result.prize.eligible:
        ...
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from ladder.db.models import Match, Player
from ladder.errors import (
    InvalidWinner,
    LadderError,
    MatchNotFound,
    MatchNotPending,
    OfficeMismatch,
    PrizeEvaluationError,
    SamePlayer,
)
from ladder.match_statuses import (
    ALL_MATCH_STATUSES,
    CANCELLED,
    COMPLETED,
    PENDING,
    can_transition,
    get_status_group,
)
from ladder.players.store import PlayerStore, normalize_office
from ladder.prizes.engine import PrizeEngine, PrizeResult
from ladder.weeks import Clock, local_now, week_start

logger = logging.getLogger(__name__)


@dataclass
class ReportResult:
    """The completed match and the winner's prize evaluation."""
    match: Match
    prize: PrizeResult


class MatchLifecycle:
    """Creates matches and drives them through pending -> completed/cancelled."""

    def __init__(
        self,
        db: Session,
        players: Optional[PlayerStore] = None,
        prizes: Optional[PrizeEngine] = None,
        clock: Clock = local_now,
    ):
        self.db = db
        self.clock = clock
        self.players = players or PlayerStore(db)
        self.prizes = prizes or PrizeEngine(db, clock=clock)

    # =========================================================================
    # Transitions
    # =========================================================================

    def create(self, player1_id: int, player2_id: int, *, commit: bool = True) -> Match:
        """
        Create a pending match between two active players of one office.

        Args:
            player1_id: First player (the longer-waiting one when paired from the queue)
            player2_id: Second player
            commit: Commit immediately. The queue passes False so the match and
                the dequeue land in the same commit.

        Raises:
            SamePlayer: Both ids are the same
            PlayerNotFound: Either player is missing or inactive
            OfficeMismatch: Players belong to different offices
        """
        if player1_id == player2_id:
            raise SamePlayer(player1_id)

        player1 = self.players.get_active(player1_id)
        player2 = self.players.get_active(player2_id)
        if player1.office != player2.office:
            raise OfficeMismatch(player1.office, player2.office)

        now = self.clock()
        match = Match(
            player1_id=player1.id,
            player2_id=player2.id,
            status=PENDING,
            week_start=week_start(now),
            created_at=now,
        )
        self.db.add(match)
        self.db.flush()

        if commit:
            self.db.commit()

        logger.info(
            "Created match %s: %s vs %s (%s, week %s)",
            match.id, player1.name, player2.name, player1.office, match.week_start,
        )
        return match

    def report(
        self,
        match_id: int,
        winner_id: int,
        reported_by: Optional[int] = None,
    ) -> ReportResult:
        """
        Record the winner of a pending match and evaluate the winner's prizes.

        Raises:
            MatchNotFound: No such match
            MatchNotPending: Match is already completed or cancelled
            InvalidWinner: winner_id is not one of the two players
            PlayerNotFound: reported_by does not resolve to a player
            PrizeEvaluationError: Result committed but prize evaluation failed
        """
        match = self._load_for_update(match_id)
        try:
            self._ensure_transition(match, COMPLETED)
            if not match.involves(winner_id):
                raise InvalidWinner(match.id, winner_id)
            if reported_by is not None:
                self.players.get(reported_by, include_inactive=True)
        except LadderError:
            # Release the row lock taken by _load_for_update
            self.db.rollback()
            raise

        match.winner_id = winner_id
        match.status = COMPLETED
        match.completed_at = self.clock()
        match.reported_by = reported_by
        self.db.commit()

        logger.info("Match %s completed, winner %s", match.id, winner_id)

        try:
            prize = self.prizes.evaluate(winner_id, week_start=match.week_start)
        except Exception as exc:
            self.db.rollback()
            logger.error(
                "Prize evaluation failed for match %s winner %s: %s",
                match.id, winner_id, exc,
            )
            raise PrizeEvaluationError(match, exc) from exc

        return ReportResult(match=match, prize=prize)

    def cancel(self, match_id: int) -> Match:
        """
        Cancel a pending match.

        Raises:
            MatchNotFound: No such match
            MatchNotPending: Completed matches can never be cancelled
        """
        match = self._load_for_update(match_id)
        try:
            self._ensure_transition(match, CANCELLED)
        except MatchNotPending:
            self.db.rollback()
            raise

        match.status = CANCELLED
        match.cancelled_at = self.clock()
        self.db.commit()

        logger.info("Match %s cancelled", match.id)
        return match

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, match_id: int) -> Match:
        match = self.db.get(Match, match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def pending(self, office: Optional[str] = None) -> list[Match]:
        """Pending matches, oldest first, optionally for one office."""
        query = self.db.query(Match).filter(Match.status.in_(get_status_group("open")))
        if office:
            player1 = aliased(Player)
            query = query.join(player1, Match.player1_id == player1.id).filter(
                player1.office == normalize_office(office)
            )
        return query.order_by(Match.created_at.asc(), Match.id.asc()).all()

    def for_player(
        self,
        player_id: int,
        statuses: Sequence[str] = ALL_MATCH_STATUSES,
    ) -> list[Match]:
        """Matches a player took part in, newest first, limited to ``statuses``."""
        self.players.get(player_id, include_inactive=True)
        return (
            self.db.query(Match)
            .filter(
                or_(Match.player1_id == player_id, Match.player2_id == player_id),
                Match.status.in_(statuses),
            )
            .order_by(Match.created_at.desc(), Match.id.desc())
            .all()
        )

    def recent(self, limit: int = 10) -> list[Match]:
        """Most recently completed matches."""
        return (
            self.db.query(Match)
            .filter(Match.status.in_(get_status_group("scored")))
            .order_by(Match.completed_at.desc(), Match.id.desc())
            .limit(limit)
            .all()
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_for_update(self, match_id: int) -> Match:
        match = (
            self.db.query(Match)
            .filter(Match.id == match_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if match is None:
            raise MatchNotFound(match_id)
        return match

    @staticmethod
    def _ensure_transition(match: Match, target: str) -> None:
        if not can_transition(match.status, target):
            raise MatchNotPending(match.id, match.status)
