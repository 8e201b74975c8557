"""
Weekly prize eligibility.

A player earns a prize the first time, within one prize week, that they
reach the win threshold (three_wins) or, failing that, the loss threshold
(three_losses). Each (player, prize type, week) is awarded at most once.

Which week a match counts toward is the week_start stored on the match at
creation. evaluate() defaults to the current week, but MatchLifecycle
passes the reported match's week_start so a late report still lands in
the week the match was created.

Duplicate protection is a read-before-insert check, backed by the
uq_prize_player_type_week constraint. Losing the insert race to another
writer is reported as "already awarded", not as an error.

Usage:
    engine = PrizeEngine(db_session)
    result = engine.evaluate(player_id)
    if result.eligible:
        print(f"Prize earned: {result.category}")
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ladder.config import settings
from ladder.db.models import (
    PRIZE_THREE_LOSSES,
    PRIZE_THREE_WINS,
    Match,
    Prize,
)
from ladder.match_statuses import COMPLETED
from ladder.weeks import Clock, local_now, week_start as compute_week_start

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyStats:
    """A player's completed results for one prize week."""
    player_id: int
    week_start: date
    wins: int = 0
    losses: int = 0

    @property
    def games(self) -> int:
        return self.wins + self.losses


@dataclass(frozen=True)
class PrizeResult:
    """
    Outcome of a prize evaluation.

    category is only set when a new prize was awarded by this call.
    """
    player_id: int
    eligible: bool
    wins: int
    losses: int
    week_start: date
    category: Optional[str] = None
    prize_id: Optional[int] = None

    def to_dict(self) -> dict:
        payload = {
            "player_id": self.player_id,
            "eligible": self.eligible,
            "wins": self.wins,
            "losses": self.losses,
            "week_start": self.week_start.isoformat(),
        }
        if self.eligible:
            payload["category"] = self.category
            payload["prize_id"] = self.prize_id
        return payload


class PrizeEngine:
    """Computes weekly stats and awards prizes."""

    def __init__(
        self,
        db: Session,
        clock: Clock = local_now,
        win_threshold: Optional[int] = None,
        loss_threshold: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.win_threshold = (
            settings.prize_win_threshold if win_threshold is None else win_threshold
        )
        self.loss_threshold = (
            settings.prize_loss_threshold if loss_threshold is None else loss_threshold
        )

    def current_week_start(self) -> date:
        return compute_week_start(self.clock())

    # =========================================================================
    # Stats
    # =========================================================================

    def weekly_stats(self, player_id: int, week_start: Optional[date] = None) -> WeeklyStats:
        """
        Count a player's completed wins and losses for one week.

        A loss is a completed match the player took part in where a winner
        exists and it is not the player.
        """
        week = week_start or self.current_week_start()

        wins, losses = (
            self.db.query(
                func.coalesce(func.sum(case((Match.winner_id == player_id, 1), else_=0)), 0),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                (Match.winner_id.is_not(None))
                                & (Match.winner_id != player_id),
                                1,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ),
            )
            .filter(
                or_(Match.player1_id == player_id, Match.player2_id == player_id),
                Match.week_start == week,
                Match.status == COMPLETED,
            )
            .one()
        )
        return WeeklyStats(player_id=player_id, week_start=week, wins=int(wins), losses=int(losses))

    def category_for(self, stats: WeeklyStats) -> Optional[str]:
        """Prize category the stats qualify for; wins take precedence."""
        if stats.wins >= self.win_threshold:
            return PRIZE_THREE_WINS
        if stats.losses >= self.loss_threshold:
            return PRIZE_THREE_LOSSES
        return None

    # =========================================================================
    # Awarding
    # =========================================================================

    def evaluate(self, player_id: int, week_start: Optional[date] = None) -> PrizeResult:
        """
        Award a prize to the player if they qualify and don't already have it.

        Args:
            player_id: Player to evaluate
            week_start: Prize week; defaults to the current week

        Returns:
            PrizeResult with eligible=True only when a new prize was inserted
        """
        stats = self.weekly_stats(player_id, week_start)
        category = self.category_for(stats)

        not_awarded = PrizeResult(
            player_id=player_id,
            eligible=False,
            wins=stats.wins,
            losses=stats.losses,
            week_start=stats.week_start,
        )
        if category is None:
            return not_awarded

        if self._find_prize(player_id, category, stats.week_start) is not None:
            logger.debug(
                "Player %s already has %s for week %s", player_id, category, stats.week_start
            )
            return not_awarded

        prize = Prize(
            player_id=player_id,
            prize_type=category,
            week_start=stats.week_start,
            earned_at=self.clock(),
            claimed=False,
        )
        self.db.add(prize)
        try:
            self.db.commit()
        except IntegrityError:
            # Another writer awarded the same prize between our check and insert
            self.db.rollback()
            logger.info(
                "Prize %s for player %s week %s awarded concurrently",
                category, player_id, stats.week_start,
            )
            return not_awarded

        logger.info(
            "Awarded %s to player %s for week %s (%sW/%sL)",
            category, player_id, stats.week_start, stats.wins, stats.losses,
        )
        return PrizeResult(
            player_id=player_id,
            eligible=True,
            wins=stats.wins,
            losses=stats.losses,
            week_start=stats.week_start,
            category=category,
            prize_id=prize.id,
        )

    def reconcile_week(self, week_start: Optional[date] = None) -> list[PrizeResult]:
        """
        Re-evaluate every player with a completed match in the week.

        evaluate() is idempotent, so this is safe to run repeatedly. It
        recovers prizes missed when evaluation failed after a report, and
        picks up three_losses prizes for players who were never the
        reported winner.

        Returns:
            Results for prizes newly awarded by this run
        """
        week = week_start or self.current_week_start()

        player_ids: set[int] = set()
        rows = (
            self.db.query(Match.player1_id, Match.player2_id)
            .filter(Match.week_start == week, Match.status == COMPLETED)
            .all()
        )
        for player1_id, player2_id in rows:
            player_ids.update((player1_id, player2_id))

        awarded = []
        for player_id in sorted(player_ids):
            result = self.evaluate(player_id, week)
            if result.eligible:
                awarded.append(result)

        logger.info(
            "Reconciled week %s: %d players checked, %d prizes awarded",
            week, len(player_ids), len(awarded),
        )
        return awarded

    def prizes_for(self, player_id: int) -> list[Prize]:
        """All prizes a player has earned, newest week first."""
        return (
            self.db.query(Prize)
            .filter(Prize.player_id == player_id)
            .order_by(Prize.week_start.desc(), Prize.id.asc())
            .all()
        )

    def _find_prize(self, player_id: int, category: str, week: date) -> Optional[Prize]:
        return (
            self.db.query(Prize)
            .filter(
                Prize.player_id == player_id,
                Prize.prize_type == category,
                Prize.week_start == week,
            )
            .first()
        )
