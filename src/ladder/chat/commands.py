"""
Slash-command adapter.

Maps chat text onto the core services and formats the reply text:

- join: QueueManager.join (reports the opponent when paired)
- leave: QueueManager.leave
- stats: PrizeEngine.weekly_stats for the current week
- leaderboard: LeaderboardAggregator.compute for the caller's office

Anything else returns the help text. Callers are identified by their chat
user id; unknown users are asked to register first.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ladder.config import settings
from ladder.db.models import Player
from ladder.errors import AlreadyQueued, LadderError
from ladder.leaderboard import LeaderboardAggregator
from ladder.matches.queue import QueueManager
from ladder.players.store import PlayerStore
from ladder.prizes.engine import PrizeEngine
from ladder.weeks import Clock, local_now

logger = logging.getLogger(__name__)

NOT_REGISTERED = "Please register first by visiting the tournament website!"


def help_text(command_name: Optional[str] = None) -> str:
    name = command_name or settings.chat_command_name
    return (
        "Available commands:\n"
        f"• `{name} join` - Join matchmaking\n"
        f"• `{name} leave` - Leave queue\n"
        f"• `{name} stats` - View your stats\n"
        f"• `{name} leaderboard` - See rankings"
    )


class ChatCommandHandler:
    """Dispatches slash-command text for one database session."""

    def __init__(self, db: Session, clock: Clock = local_now):
        self.db = db
        self.clock = clock
        self.players = PlayerStore(db)
        self.queue = QueueManager(db, players=self.players, clock=clock)
        self.prizes = PrizeEngine(db, clock=clock)
        self.leaderboard = LeaderboardAggregator(db)

        self._commands: dict[str, Callable[[Player], str]] = {
            "join": self.join,
            "leave": self.leave,
            "stats": self.stats,
            "leaderboard": self.show_leaderboard,
        }

    def handle(self, text: str, chat_user_id: str) -> str:
        """Run one command and return the reply text."""
        command = (text or "").strip().lower()
        action = self._commands.get(command)
        if action is None:
            return help_text()

        player = self.players.find_by_chat_user(chat_user_id)
        if player is None:
            return NOT_REGISTERED

        try:
            return action(player)
        except LadderError as exc:
            logger.warning("Chat command '%s' failed for %s: %s", command, chat_user_id, exc)
            return f"Sorry, that didn't work: {exc.message}"

    # =========================================================================
    # Commands
    # =========================================================================

    def join(self, player: Player) -> str:
        try:
            result = self.queue.join(player.id)
        except AlreadyQueued:
            return f"You're already in the {player.office} queue. Hang tight!"

        if result.match is None:
            return (
                f"⏳ You've joined the {player.office} matchmaking queue. "
                "Waiting for an opponent..."
            )

        opponent_id = (
            result.match.player2_id
            if result.match.player1_id == player.id
            else result.match.player1_id
        )
        opponent = self.players.get(opponent_id, include_inactive=True)
        return f"🎯 Match found! You're paired with {opponent.name}. Good luck! 🍀"

    def leave(self, player: Player) -> str:
        if self.queue.leave(player.id):
            return "👋 You've left the matchmaking queue."
        return "You weren't in the matchmaking queue."

    def stats(self, player: Player) -> str:
        stats = self.prizes.weekly_stats(player.id)
        return (
            "📊 Your stats this week:\n"
            f"🏆 Wins: {stats.wins}\n"
            f"💀 Losses: {stats.losses}\n"
            f"🎯 Games played: {stats.games}"
        )

    def show_leaderboard(self, player: Player) -> str:
        entries = self.leaderboard.compute(player.office)[: settings.chat_leaderboard_size]
        lines = [f"🏆 {player.office.upper()} OFFICE LEADERBOARD 🏆", ""]
        if not entries:
            lines.append("No games played yet.")
        for entry in entries:
            lines.append(
                f"{entry.rank}. {entry.name} - {entry.wins}W/{entry.losses}L "
                f"({entry.win_rate:.1f}%)"
            )
        return "\n".join(lines)
