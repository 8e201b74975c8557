"""
Leaderboard aggregation.

Derives the ranked win/loss table from completed matches on every call;
nothing is cached between requests. Players with no completed games are
still listed (all zeros) so a fresh office shows its roster.

Ordering: wins descending, then total games descending, then name and id
so equal rows come back in a stable order.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from ladder.db.models import Match, Player
from ladder.match_statuses import COMPLETED
from ladder.players.store import normalize_office


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_id: int
    name: str
    office: str
    avatar_ref: Optional[str]
    wins: int
    losses: int
    total_games: int

    @property
    def win_rate(self) -> float:
        """Win percentage rounded to one decimal (0.0 with no games)."""
        if self.total_games == 0:
            return 0.0
        return round(self.wins / self.total_games * 100, 1)

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "player_id": self.player_id,
            "name": self.name,
            "office": self.office,
            "avatar_ref": self.avatar_ref,
            "wins": self.wins,
            "losses": self.losses,
            "total_games": self.total_games,
            "win_rate": self.win_rate,
        }


class LeaderboardAggregator:
    """Builds the leaderboard from the matches table."""

    def __init__(self, db: Session):
        self.db = db

    def compute(self, office: Optional[str] = None) -> list[LeaderboardEntry]:
        """
        Rank active players by completed results.

        Args:
            office: Restrict to one office; None ranks everyone

        Returns:
            Entries in rank order, rank starting at 1
        """
        participated = or_(Match.player1_id == Player.id, Match.player2_id == Player.id)

        wins = func.count(case((Match.winner_id == Player.id, 1)))
        losses = func.count(
            case(
                (and_(Match.winner_id.is_not(None), Match.winner_id != Player.id), 1)
            )
        )
        total_games = func.count(Match.id)

        query = (
            self.db.query(
                Player.id,
                Player.name,
                Player.office,
                Player.avatar_ref,
                wins.label("wins"),
                losses.label("losses"),
                total_games.label("total_games"),
            )
            .outerjoin(Match, and_(participated, Match.status == COMPLETED))
            .filter(Player.is_active.is_(True))
        )
        if office:
            query = query.filter(Player.office == normalize_office(office))

        rows = (
            query.group_by(Player.id, Player.name, Player.office, Player.avatar_ref)
            .order_by(
                wins.desc(),
                total_games.desc(),
                Player.name.asc(),
                Player.id.asc(),
            )
            .all()
        )

        return [
            LeaderboardEntry(
                rank=index + 1,
                player_id=row.id,
                name=row.name,
                office=row.office,
                avatar_ref=row.avatar_ref,
                wins=int(row.wins),
                losses=int(row.losses),
                total_games=int(row.total_games),
            )
            for index, row in enumerate(rows)
        ]
