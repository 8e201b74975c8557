"""Player registry."""

from ladder.players.store import PlayerStore, normalize_office

__all__ = ["PlayerStore", "normalize_office"]
