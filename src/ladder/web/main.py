"""
JSON API for Office Ladder.

Thin HTTP layer over the core services. Every request gets its own
session via get_db; the services commit their own units of work.

Ladder errors map onto status codes:
- NotFoundError -> 404
- InvalidArgumentError -> 400
- ConflictError -> 409
- PrizeEvaluationError -> 500 (the match *was* completed; body includes it)

Run locally:
    python -m ladder.web.main
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ladder import __version__
from ladder.chat.commands import ChatCommandHandler
from ladder.config import configure_logging, settings
from ladder.db.models import Match, Player, QueueEntry
from ladder.db.session import get_db
from ladder.errors import (
    ConflictError,
    InvalidArgumentError,
    LadderError,
    NotFoundError,
    PrizeEvaluationError,
)
from ladder.leaderboard import LeaderboardAggregator
from ladder.match_statuses import parse_status_filter
from ladder.matches.lifecycle import MatchLifecycle
from ladder.matches.queue import QueueManager
from ladder.players.store import PlayerStore
from ladder.prizes.engine import PrizeEngine
from ladder.weeks import week_start as compute_week_start

logger = logging.getLogger(__name__)

app = FastAPI(title="Office Ladder", version=__version__)


# =============================================================================
# Request bodies
# =============================================================================

class PlayerCreate(BaseModel):
    name: str
    office: str
    email: Optional[str] = None
    chat_user_id: Optional[str] = None


class PlayerUpdate(BaseModel):
    name: Optional[str] = None
    office: Optional[str] = None
    email: Optional[str] = None
    chat_user_id: Optional[str] = None


class AvatarUpdate(BaseModel):
    avatar_ref: str = Field(min_length=1)


class QueueJoin(BaseModel):
    player_id: int
    office: Optional[str] = None


class QueueLeave(BaseModel):
    player_id: int


class MatchCreate(BaseModel):
    player1_id: int
    player2_id: int


class MatchReport(BaseModel):
    winner_id: int
    reported_by: Optional[int] = None


# =============================================================================
# Serialization
# =============================================================================

def _player_dict(player: Player) -> Dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "email": player.email,
        "chat_user_id": player.chat_user_id,
        "office": player.office,
        "avatar_ref": player.avatar_ref,
        "is_active": player.is_active,
        "joined_at": player.joined_at.isoformat() if player.joined_at else None,
    }


def _match_dict(match: Match) -> Dict[str, Any]:
    def _iso(value):
        return value.isoformat() if value else None

    return {
        "id": match.id,
        "player1_id": match.player1_id,
        "player2_id": match.player2_id,
        "winner_id": match.winner_id,
        "status": match.status,
        "week_start": _iso(match.week_start),
        "reported_by": match.reported_by,
        "created_at": _iso(match.created_at),
        "completed_at": _iso(match.completed_at),
        "cancelled_at": _iso(match.cancelled_at),
    }


def _queue_entry_dict(entry: QueueEntry, position: int) -> Dict[str, Any]:
    return {
        "position": position,
        "player_id": entry.player_id,
        "name": entry.player.name,
        "office": entry.office,
        "joined_at": entry.joined_at.isoformat(),
    }


# =============================================================================
# Error handling
# =============================================================================

def _status_for(exc: LadderError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidArgumentError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    return 500


@app.exception_handler(LadderError)
async def ladder_error_handler(request: Request, exc: LadderError):
    """Render ladder errors as JSON with a stable error code."""
    body = exc.to_dict()
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(body, status_code=status_code)


# =============================================================================
# Health
# =============================================================================

@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}


# =============================================================================
# Players
# =============================================================================

@app.get("/api/players")
def list_players(
    office: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List active players, optionally for one office."""
    return [_player_dict(p) for p in PlayerStore(db).list_players(office)]


@app.post("/api/players", status_code=201)
def create_player(body: PlayerCreate, db: Session = Depends(get_db)):
    player = PlayerStore(db).register(
        name=body.name,
        office=body.office,
        email=body.email,
        chat_user_id=body.chat_user_id,
    )
    return _player_dict(player)


@app.get("/api/players/{player_id}")
def get_player(player_id: int, db: Session = Depends(get_db)):
    return _player_dict(PlayerStore(db).get_active(player_id))


@app.put("/api/players/{player_id}")
def update_player(player_id: int, body: PlayerUpdate, db: Session = Depends(get_db)):
    player = PlayerStore(db).update(
        player_id,
        name=body.name,
        office=body.office,
        email=body.email,
        chat_user_id=body.chat_user_id,
    )
    return _player_dict(player)


@app.delete("/api/players/{player_id}")
def deactivate_player(player_id: int, db: Session = Depends(get_db)):
    """Soft-delete: the player keeps their match history."""
    player = PlayerStore(db).deactivate(player_id)
    return _player_dict(player)


@app.put("/api/players/{player_id}/avatar")
def set_avatar(player_id: int, body: AvatarUpdate, db: Session = Depends(get_db)):
    previous = PlayerStore(db).set_avatar(player_id, body.avatar_ref)
    return {"avatar_ref": body.avatar_ref, "previous_avatar_ref": previous}


@app.delete("/api/players/{player_id}/avatar")
def clear_avatar(player_id: int, db: Session = Depends(get_db)):
    previous = PlayerStore(db).set_avatar(player_id, None)
    return {"avatar_ref": None, "previous_avatar_ref": previous}


@app.get("/api/players/{player_id}/weekly-stats")
def weekly_stats(
    player_id: int,
    week_start: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Wins/losses for the prize week containing week_start (default: this week)."""
    PlayerStore(db).get(player_id, include_inactive=True)
    engine = PrizeEngine(db)
    stats = engine.weekly_stats(player_id, compute_week_start(week_start) if week_start else None)
    return {
        "player_id": player_id,
        "week_start": stats.week_start.isoformat(),
        "wins": stats.wins,
        "losses": stats.losses,
        "games": stats.games,
        "prizes": [
            {
                "id": prize.id,
                "prize_type": prize.prize_type,
                "week_start": prize.week_start.isoformat(),
                "claimed": prize.claimed,
            }
            for prize in engine.prizes_for(player_id)
            if prize.week_start == stats.week_start
        ],
    }


@app.get("/api/leaderboard")
def leaderboard(
    office: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return [entry.to_dict() for entry in LeaderboardAggregator(db).compute(office)]


# =============================================================================
# Matchmaking queue
# =============================================================================

@app.post("/api/queue/join")
def join_queue(body: QueueJoin, db: Session = Depends(get_db)):
    result = QueueManager(db).join(body.player_id, body.office)
    if result.match is None:
        return {
            "message": "Added to queue, waiting for opponent...",
            "matched": False,
            "office": result.office,
        }
    return {
        "message": "Match created!",
        "matched": True,
        "office": result.office,
        "match": _match_dict(result.match),
    }


@app.post("/api/queue/leave")
def leave_queue(body: QueueLeave, db: Session = Depends(get_db)):
    removed = QueueManager(db).leave(body.player_id)
    return {"message": "Removed from queue", "removed": removed}


@app.get("/api/queue/{office}")
def queue_status(office: str, db: Session = Depends(get_db)):
    entries = QueueManager(db).entries(office)
    return [_queue_entry_dict(entry, i + 1) for i, entry in enumerate(entries)]


# =============================================================================
# Matches
# =============================================================================

@app.post("/api/matches", status_code=201)
def create_match(body: MatchCreate, db: Session = Depends(get_db)):
    match = MatchLifecycle(db).create(body.player1_id, body.player2_id)
    return {"message": "Match created successfully", "match": _match_dict(match)}


@app.get("/api/matches/pending")
def pending_matches(
    office: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return [_match_dict(m) for m in MatchLifecycle(db).pending(office)]


@app.get("/api/matches/recent")
def recent_matches(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return [_match_dict(m) for m in MatchLifecycle(db).recent(limit)]


@app.get("/api/matches/player/{player_id}")
def player_matches(
    player_id: int,
    status: Optional[str] = Query(None, description="Statuses or groups, e.g. 'open' or 'completed,cancelled'"),
    db: Session = Depends(get_db),
):
    statuses = parse_status_filter(status)
    return [_match_dict(m) for m in MatchLifecycle(db).for_player(player_id, statuses)]


@app.get("/api/matches/{match_id}")
def get_match(match_id: int, db: Session = Depends(get_db)):
    return _match_dict(MatchLifecycle(db).get(match_id))


@app.post("/api/matches/{match_id}/report")
def report_match(match_id: int, body: MatchReport, db: Session = Depends(get_db)):
    """Report the winner. Includes the prize when this result earned one."""
    try:
        result = MatchLifecycle(db).report(match_id, body.winner_id, body.reported_by)
    except PrizeEvaluationError as exc:
        # The result is saved; tell the client not to report again
        logger.error("Prize evaluation failed after reporting match %s", match_id)
        payload = exc.to_dict()
        payload["match"] = _match_dict(exc.match)
        return JSONResponse(payload, status_code=500)

    response: Dict[str, Any] = {
        "message": "Match reported successfully",
        "match": _match_dict(result.match),
        "prize_check": result.prize.to_dict(),
    }
    if result.prize.eligible:
        label = result.prize.category.replace("_", " ")
        response["prize"] = {
            "player_id": body.winner_id,
            "type": result.prize.category,
            "message": f"Congratulations! You've earned a prize for {label}!",
            "wins": result.prize.wins,
            "losses": result.prize.losses,
        }
    return response


@app.delete("/api/matches/{match_id}")
def cancel_match(match_id: int, db: Session = Depends(get_db)):
    match = MatchLifecycle(db).cancel(match_id)
    return {"message": "Match cancelled", "match": _match_dict(match)}


# =============================================================================
# Chat commands
# =============================================================================

@app.post("/api/slack/commands")
async def slack_command(request: Request, db: Session = Depends(get_db)):
    """Slash-command webhook (form-encoded text and user_id)."""
    form = await request.form()
    text = str(form.get("text", ""))
    user_id = str(form.get("user_id", ""))
    reply = ChatCommandHandler(db).handle(text, user_id)
    return {"response_type": "ephemeral", "text": reply}


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(
        "ladder.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
