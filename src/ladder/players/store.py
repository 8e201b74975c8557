"""
Player registry.

PlayerStore is the only place that creates or edits Player rows. The
queue and match services use it to resolve participants, and the chat
adapter uses it to map chat accounts onto players.

Offices are normalized to trimmed lower-case tags so 'New York' and
'new york ' land in the same queue. When settings.offices is non-empty,
only those tags are accepted.

Each mutating method commits its own unit of work.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ladder.config import settings
from ladder.db.models import Player, QueueEntry
from ladder.errors import (
    DuplicateChatUser,
    InvalidArgumentError,
    PlayerNotFound,
    UnknownOffice,
)

logger = logging.getLogger(__name__)


def normalize_office(office: str) -> str:
    """Canonical form of an office tag."""
    return " ".join(office.split()).lower()


class PlayerStore:
    """
    Durable registry of players.

    Usage:
        store = PlayerStore(db_session)
        alice = store.register("Alice Johnson", "Chicago", chat_user_id="U01234567")
        store.get_active(alice.id)
    """

    def __init__(self, db: Session, allowed_offices: Optional[list[str]] = None):
        """
        Initialize the store.

        Args:
            db: SQLAlchemy session for database operations
            allowed_offices: Office whitelist; defaults to settings.offices.
                An empty list accepts any office.
        """
        self.db = db
        if allowed_offices is None:
            allowed_offices = settings.offices
        self.allowed_offices = [normalize_office(o) for o in allowed_offices]

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, player_id: int, include_inactive: bool = False) -> Player:
        """Return a player by id, raising PlayerNotFound if missing."""
        player = self.db.get(Player, player_id)
        if player is None or (not include_inactive and not player.is_active):
            raise PlayerNotFound(player_id)
        return player

    def get_active(self, player_id: int) -> Player:
        """Return an active player; inactive players count as not found."""
        return self.get(player_id, include_inactive=False)

    def find_by_chat_user(self, chat_user_id: str) -> Optional[Player]:
        """Look up an active player by their chat account id."""
        return (
            self.db.query(Player)
            .filter(Player.chat_user_id == chat_user_id, Player.is_active.is_(True))
            .first()
        )

    def list_players(self, office: Optional[str] = None) -> list[Player]:
        """Active players, optionally restricted to one office, ordered by name."""
        query = self.db.query(Player).filter(Player.is_active.is_(True))
        if office:
            query = query.filter(Player.office == normalize_office(office))
        return query.order_by(Player.name.asc(), Player.id.asc()).all()

    # =========================================================================
    # Mutations
    # =========================================================================

    def register(
        self,
        name: str,
        office: str,
        email: Optional[str] = None,
        chat_user_id: Optional[str] = None,
        avatar_ref: Optional[str] = None,
    ) -> Player:
        """
        Register a new player.

        Raises:
            InvalidArgumentError: Empty name
            UnknownOffice: Office outside the configured list
            DuplicateChatUser: chat_user_id already linked to another player
        """
        player = Player(
            name=self._clean_name(name),
            office=self._clean_office(office),
            email=email or None,
            chat_user_id=chat_user_id or None,
            avatar_ref=avatar_ref or None,
            is_active=True,
        )
        if player.chat_user_id:
            self._ensure_chat_user_free(player.chat_user_id)

        self.db.add(player)
        self._commit_chat_user(player.chat_user_id)
        logger.info("Registered player %s (%s) in %s", player.id, player.name, player.office)
        return player

    def update(
        self,
        player_id: int,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        chat_user_id: Optional[str] = None,
        office: Optional[str] = None,
    ) -> Player:
        """
        Update profile fields. Fields left as None are unchanged.

        Changing office also drops the player from their current queue,
        since queue entries are office-scoped.
        """
        player = self.get_active(player_id)

        if name is not None:
            player.name = self._clean_name(name)
        if email is not None:
            player.email = email or None
        if chat_user_id is not None and chat_user_id != player.chat_user_id:
            if chat_user_id:
                self._ensure_chat_user_free(chat_user_id, exclude_player_id=player.id)
            player.chat_user_id = chat_user_id or None
        if office is not None:
            new_office = self._clean_office(office)
            if new_office != player.office:
                self._drop_queue_entry(player.id)
                player.office = new_office

        self._commit_chat_user(player.chat_user_id)
        return player

    def set_avatar(self, player_id: int, avatar_ref: Optional[str]) -> Optional[str]:
        """
        Replace (or clear) the player's avatar reference.

        Returns:
            The previous reference, so the caller can discard the old asset
        """
        player = self.get_active(player_id)
        previous = player.avatar_ref
        player.avatar_ref = avatar_ref or None
        self.db.commit()
        return previous

    def deactivate(self, player_id: int) -> Player:
        """Soft-delete a player and remove them from any queue."""
        player = self.get(player_id, include_inactive=True)
        if not player.is_active:
            return player
        player.is_active = False
        self._drop_queue_entry(player.id)
        self.db.commit()
        logger.info("Deactivated player %s", player.id)
        return player

    # =========================================================================
    # Helpers
    # =========================================================================

    def _clean_name(self, name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidArgumentError("Player name cannot be empty")
        return cleaned

    def _clean_office(self, office: str) -> str:
        cleaned = normalize_office(office or "")
        if not cleaned:
            raise InvalidArgumentError("Office cannot be empty")
        if self.allowed_offices and cleaned not in self.allowed_offices:
            raise UnknownOffice(cleaned, self.allowed_offices)
        return cleaned

    def _ensure_chat_user_free(
        self,
        chat_user_id: str,
        exclude_player_id: Optional[int] = None,
    ) -> None:
        query = self.db.query(Player.id).filter(Player.chat_user_id == chat_user_id)
        if exclude_player_id is not None:
            query = query.filter(Player.id != exclude_player_id)
        if query.first() is not None:
            raise DuplicateChatUser(chat_user_id)

    def _commit_chat_user(self, chat_user_id: Optional[str]) -> None:
        """Commit, mapping a lost race on the chat id constraint to a conflict."""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if chat_user_id:
                raise DuplicateChatUser(chat_user_id)
            raise

    def _drop_queue_entry(self, player_id: int) -> None:
        self.db.query(QueueEntry).filter(QueueEntry.player_id == player_id).delete(
            synchronize_session=False
        )
