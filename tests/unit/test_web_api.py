"""Tests for the JSON API using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from ladder.db.session import get_db
from ladder.prizes.engine import PrizeEngine
from ladder.web.main import app


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _register(client, name, office="chicago", **extra):
    response = client.post("/api/players", json={"name": name, "office": office, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_player_crud(client):
    alice = _register(client, "Alice", "Chicago", chat_user_id="U1")
    assert alice["office"] == "chicago"

    assert client.get(f"/api/players/{alice['id']}").json()["name"] == "Alice"
    assert client.put(f"/api/players/{alice['id']}", json={"name": "Alice J"}).json()["name"] == "Alice J"

    dup = client.post("/api/players", json={"name": "X", "office": "chicago", "chat_user_id": "U1"})
    assert dup.status_code == 409
    assert dup.json()["code"] == "duplicate_chat_user"

    bad_office = client.post("/api/players", json={"name": "X", "office": "mars"})
    assert bad_office.status_code == 400

    assert client.delete(f"/api/players/{alice['id']}").json()["is_active"] is False
    assert client.get(f"/api/players/{alice['id']}").status_code == 404
    assert client.get("/api/players").json() == []


def test_avatar_reference(client):
    alice = _register(client, "Alice")
    url = f"/api/players/{alice['id']}/avatar"

    first = client.put(url, json={"avatar_ref": "/uploads/avatars/a.png"}).json()
    assert first["previous_avatar_ref"] is None

    cleared = client.delete(url).json()
    assert cleared == {"avatar_ref": None, "previous_avatar_ref": "/uploads/avatars/a.png"}


def test_queue_to_report_flow(client):
    x = _register(client, "X")
    y = _register(client, "Y")

    waiting = client.post("/api/queue/join", json={"player_id": x["id"]}).json()
    assert waiting["matched"] is False
    assert [e["name"] for e in client.get("/api/queue/chicago").json()] == ["X"]

    again = client.post("/api/queue/join", json={"player_id": x["id"]})
    assert again.status_code == 409
    assert again.json()["code"] == "already_queued"

    paired = client.post("/api/queue/join", json={"player_id": y["id"]}).json()
    assert paired["matched"] is True
    match = paired["match"]
    assert (match["player1_id"], match["player2_id"]) == (x["id"], y["id"])
    assert client.get("/api/queue/chicago").json() == []
    assert [m["id"] for m in client.get("/api/matches/pending").json()] == [match["id"]]

    bad_winner = client.post(f"/api/matches/{match['id']}/report", json={"winner_id": 9999})
    assert bad_winner.status_code == 400

    reported = client.post(f"/api/matches/{match['id']}/report", json={"winner_id": x["id"]})
    assert reported.status_code == 200
    body = reported.json()
    assert body["match"]["status"] == "completed"
    assert body["prize_check"]["eligible"] is False
    assert "prize" not in body

    again = client.post(f"/api/matches/{match['id']}/report", json={"winner_id": y["id"]})
    assert again.status_code == 409
    assert client.get(f"/api/matches/{match['id']}").json()["winner_id"] == x["id"]

    cancel = client.delete(f"/api/matches/{match['id']}")
    assert cancel.status_code == 409

    stats = client.get(f"/api/players/{x['id']}/weekly-stats").json()
    assert (stats["wins"], stats["losses"], stats["games"]) == (1, 0, 1)

    board = client.get("/api/leaderboard", params={"office": "chicago"}).json()
    assert [row["name"] for row in board] == ["X", "Y"]


def test_third_win_returns_prize(client):
    x = _register(client, "X")
    y = _register(client, "Y")

    body = None
    for _ in range(3):
        created = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": y["id"]})
        assert created.status_code == 201
        match_id = created.json()["match"]["id"]
        body = client.post(f"/api/matches/{match_id}/report", json={"winner_id": x["id"]}).json()

    assert body["prize"]["type"] == "three_wins"
    assert body["prize"]["wins"] == 3
    assert "three wins" in body["prize"]["message"]


def test_create_match_errors(client):
    x = _register(client, "X")
    t = _register(client, "T", "tempe")

    same = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": x["id"]})
    assert same.status_code == 400
    assert same.json()["code"] == "same_player"

    mismatch = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": t["id"]})
    assert mismatch.status_code == 400
    assert mismatch.json()["code"] == "office_mismatch"

    missing = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": 9999})
    assert missing.status_code == 404

    assert client.get("/api/matches/4242").status_code == 404


def test_cancel_and_history(client):
    x = _register(client, "X")
    y = _register(client, "Y")
    match = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": y["id"]}).json()["match"]

    cancelled = client.delete(f"/api/matches/{match['id']}").json()
    assert cancelled["match"]["status"] == "cancelled"

    history = client.get(f"/api/matches/player/{y['id']}").json()
    assert [m["status"] for m in history] == ["cancelled"]
    assert client.get("/api/matches/recent").json() == []


def test_slack_commands(client):
    _register(client, "Alice", chat_user_id="U1")

    reply = client.post("/api/slack/commands", data={"text": "join", "user_id": "U1"}).json()
    assert "matchmaking queue" in reply["text"]

    unknown = client.post("/api/slack/commands", data={"text": "join", "user_id": "U9"}).json()
    assert "register" in unknown["text"]

    help_reply = client.post("/api/slack/commands", data={"text": "", "user_id": "U1"}).json()
    assert "Available commands" in help_reply["text"]


def test_prize_failure_returns_completed_match(client, monkeypatch):
    x = _register(client, "X")
    y = _register(client, "Y")
    match = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": y["id"]}).json()["match"]

    def _broken_evaluate(self, player_id, week_start=None):
        raise RuntimeError("prize store unavailable")

    monkeypatch.setattr(PrizeEngine, "evaluate", _broken_evaluate)

    failed = client.post(f"/api/matches/{match['id']}/report", json={"winner_id": x["id"]})
    assert failed.status_code == 500
    body = failed.json()
    assert body["code"] == "prize_evaluation_failed"
    assert body["match"]["status"] == "completed"
    assert body["match"]["winner_id"] == x["id"]

    again = client.post(f"/api/matches/{match['id']}/report", json={"winner_id": x["id"]})
    assert again.status_code == 409
    assert again.json()["code"] == "match_not_pending"


def test_player_matches_status_filter(client):
    x = _register(client, "X")
    y = _register(client, "Y")
    first = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": y["id"]}).json()["match"]
    second = client.post("/api/matches", json={"player1_id": x["id"], "player2_id": y["id"]}).json()["match"]
    client.post(f"/api/matches/{first['id']}/report", json={"winner_id": x["id"]})

    url = f"/api/matches/player/{x['id']}"
    assert [m["id"] for m in client.get(url, params={"status": "open"}).json()] == [second["id"]]
    assert [m["id"] for m in client.get(url, params={"status": "completed"}).json()] == [first["id"]]
    assert len(client.get(url).json()) == 2

    bad = client.get(url, params={"status": "finished"})
    assert bad.status_code == 400
    assert bad.json()["code"] == "unknown_status"
