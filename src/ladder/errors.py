"""Errors raised by the ladder core.

Three kinds of failure are produced, each a subclass of ``LadderError``:

- ``NotFoundError``: a player or match does not exist (or is inactive)
- ``InvalidArgumentError``: the request itself is wrong
- ``ConflictError``: the request clashes with current state

The web layer maps these onto 404/400/409. ``PrizeEvaluationError`` is kept
outside the hierarchy's kinds because it is raised *after* a report has been
committed and must not be mistaken for a failed report.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ladder.db.models import Match


class LadderError(Exception):
    """Base class for all ladder errors."""

    code = "ladder_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.details}


class NotFoundError(LadderError):
    code = "not_found"


class InvalidArgumentError(LadderError):
    code = "invalid_argument"


class ConflictError(LadderError):
    code = "conflict"


# -- NotFound ------------------------------------------------------------------

class PlayerNotFound(NotFoundError):
    code = "player_not_found"

    def __init__(self, player_id: int | str):
        super().__init__(f"Player {player_id} not found", player_id=player_id)


class MatchNotFound(NotFoundError):
    code = "match_not_found"

    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} not found", match_id=match_id)


# -- InvalidArgument -----------------------------------------------------------

class SamePlayer(InvalidArgumentError):
    code = "same_player"

    def __init__(self, player_id: int):
        super().__init__("Players cannot play against themselves", player_id=player_id)


class OfficeMismatch(InvalidArgumentError):
    code = "office_mismatch"

    def __init__(self, office_a: str, office_b: str):
        super().__init__(
            "Players must be in the same office",
            offices=[office_a, office_b],
        )


class InvalidWinner(InvalidArgumentError):
    code = "invalid_winner"

    def __init__(self, match_id: int, winner_id: int):
        super().__init__(
            "Winner must be one of the match participants",
            match_id=match_id,
            winner_id=winner_id,
        )


class UnknownOffice(InvalidArgumentError):
    code = "unknown_office"

    def __init__(self, office: str, allowed: list[str]):
        super().__init__(f"Unknown office '{office}'", office=office, allowed=allowed)


class UnknownStatus(InvalidArgumentError):
    code = "unknown_status"

    def __init__(self, status: str, allowed: list[str]):
        super().__init__(f"Unknown match status '{status}'", status=status, allowed=allowed)


# -- Conflict ------------------------------------------------------------------

class AlreadyQueued(ConflictError):
    code = "already_queued"

    def __init__(self, player_id: int):
        super().__init__("Player already in queue", player_id=player_id)


class MatchNotPending(ConflictError):
    code = "match_not_pending"

    def __init__(self, match_id: int, status: str):
        super().__init__(
            f"Match {match_id} is already {status}",
            match_id=match_id,
            status=status,
        )


class DuplicateChatUser(ConflictError):
    code = "duplicate_chat_user"

    def __init__(self, chat_user_id: str):
        super().__init__(
            "Chat user is already registered to another player",
            chat_user_id=chat_user_id,
        )


# -- Report/evaluate split -----------------------------------------------------

class PrizeEvaluationError(LadderError):
    """Prize evaluation failed after the match result was committed.

    ``match`` is the completed match; the report itself succeeded and must
    not be retried. Prizes can be recovered with
    ``PrizeEngine.reconcile_week``.
    """

    code = "prize_evaluation_failed"

    def __init__(self, match: "Match", cause: BaseException):
        super().__init__(
            f"Match {match.id} completed but prize evaluation failed: {cause}",
            match_id=match.id,
        )
        self.match = match
        self.cause = cause
