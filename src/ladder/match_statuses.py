"""Shared match-status definitions and helpers.

This module is the single source of truth for match statuses, the allowed
transitions between them, and the named status groups the match queries
filter on.
"""

from __future__ import annotations

from typing import Optional

from ladder.errors import UnknownStatus

PENDING = "pending"
COMPLETED = "completed"
CANCELLED = "cancelled"

ALL_MATCH_STATUSES: tuple[str, ...] = (PENDING, COMPLETED, CANCELLED)

# pending is the only state with outgoing transitions.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

MATCH_STATUS_GROUPS: dict[str, tuple[str, ...]] = {
    # Matches still awaiting a result.
    "open": (PENDING,),
    # Matches that count toward the leaderboard and prizes.
    "scored": (COMPLETED,),
    "all": ALL_MATCH_STATUSES,
}


def get_status_group(group_name: str) -> tuple[str, ...]:
    """Return a named status group, raising KeyError for unknown names."""
    return MATCH_STATUS_GROUPS[group_name]


def can_transition(current: str, target: str) -> bool:
    """Return True when ``current`` may move to ``target``."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def parse_status_filter(raw: Optional[str]) -> tuple[str, ...]:
    """Turn a ``?status=`` query value into a tuple of statuses.

    The value is a comma-separated mix of statuses and group names, e.g.
    ``"open"`` or ``"completed,cancelled"``. Blank input means every status.

    Raises:
        UnknownStatus: A token is neither a status nor a group name
    """
    if raw is None or not raw.strip():
        return ALL_MATCH_STATUSES

    selected: list[str] = []
    for token in raw.split(","):
        name = token.strip().lower()
        if not name:
            continue
        if name in MATCH_STATUS_GROUPS:
            statuses = MATCH_STATUS_GROUPS[name]
        elif name in ALL_MATCH_STATUSES:
            statuses = (name,)
        else:
            raise UnknownStatus(name, sorted(ALL_MATCH_STATUSES + tuple(MATCH_STATUS_GROUPS)))
        selected.extend(s for s in statuses if s not in selected)

    return tuple(selected) or ALL_MATCH_STATUSES
