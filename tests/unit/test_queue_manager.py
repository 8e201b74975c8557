"""
Unit tests for QueueManager.

Pairing is FIFO within an office and fires on every join once two
players are waiting.
"""

import pytest

from ladder.db.models import Match, QueueEntry
from ladder.errors import AlreadyQueued, OfficeMismatch, PlayerNotFound
from ladder.matches.lifecycle import MatchLifecycle
from ladder.matches.queue import QueueManager


@pytest.fixture
def queue(db_session, store, clock):
    return QueueManager(db_session, players=store, clock=clock)


def _queued_ids(queue, office="chicago"):
    return [entry.player_id for entry in queue.entries(office)]


def test_first_join_waits(queue, make_player):
    alice = make_player("Alice")

    result = queue.join(alice.id)

    assert not result.matched
    assert result.office == "chicago"
    assert queue.is_queued(alice.id)
    assert _queued_ids(queue) == [alice.id]


def test_second_join_pairs_oldest_first(queue, make_player, db_session, clock):
    x = make_player("X")
    y = make_player("Y")

    queue.join(x.id)
    clock.advance(seconds=30)
    result = queue.join(y.id)

    assert result.matched
    match = result.match
    assert (match.player1_id, match.player2_id) == (x.id, y.id)
    assert match.status == "pending"
    assert _queued_ids(queue) == []
    assert db_session.query(Match).count() == 1


def test_already_queued(queue, make_player, db_session):
    alice = make_player("Alice")
    queue.join(alice.id)

    with pytest.raises(AlreadyQueued):
        queue.join(alice.id)
    assert db_session.query(QueueEntry).filter_by(player_id=alice.id).count() == 1


def test_join_validates_player_and_office(queue, make_player, store):
    alice = make_player("Alice")

    with pytest.raises(PlayerNotFound):
        queue.join(9999)
    with pytest.raises(OfficeMismatch):
        queue.join(alice.id, "tempe")

    # Explicit office matching the player's own (any casing) is fine
    assert queue.join(alice.id, " Chicago ").office == "chicago"

    bob = make_player("Bob")
    store.deactivate(bob.id)
    with pytest.raises(PlayerNotFound):
        queue.join(bob.id)


def test_offices_are_never_mixed(queue, make_player):
    alice = make_player("Alice", office="chicago")
    carol = make_player("Carol", office="new york")

    assert not queue.join(alice.id).matched
    assert not queue.join(carol.id).matched

    assert _queued_ids(queue, "chicago") == [alice.id]
    assert _queued_ids(queue, "new york") == [carol.id]


def test_sequential_joins_leave_n_mod_2(queue, make_player, db_session, clock):
    players = [make_player(f"P{i}") for i in range(5)]

    matches = []
    for player in players:
        clock.advance(seconds=1)
        result = queue.join(player.id)
        if result.matched:
            matches.append(result.match)

    assert [(m.player1_id, m.player2_id) for m in matches] == [
        (players[0].id, players[1].id),
        (players[2].id, players[3].id),
    ]
    assert _queued_ids(queue) == [players[4].id]
    assert db_session.query(Match).count() == 2


def test_fifo_ties_break_by_insertion_order(queue, make_player):
    # Clock never moves, so every entry shares the same joined_at
    a, b, c = make_player("A"), make_player("B"), make_player("C")
    queue.join(a.id)
    queue.leave(a.id)
    queue.join(b.id)
    paired = queue.join(a.id)
    result = queue.join(c.id)

    assert (paired.match.player1_id, paired.match.player2_id) == (b.id, a.id)

    assert result.match is None
    assert _queued_ids(queue) == [c.id]


def test_leave_is_idempotent(queue, make_player):
    alice = make_player("Alice")
    queue.join(alice.id)

    assert queue.leave(alice.id) is True
    assert queue.leave(alice.id) is False
    assert not queue.is_queued(alice.id)


def test_failed_pairing_keeps_everyone_queued(queue, make_player, db_session):
    alice = make_player("Alice")
    bob = make_player("Bob")
    queue.join(alice.id)

    # Alice goes inactive without passing through PlayerStore.deactivate,
    # so her queue entry is still present when Bob joins.
    alice.is_active = False
    db_session.commit()

    with pytest.raises(PlayerNotFound):
        queue.join(bob.id)

    assert _queued_ids(queue) == [alice.id, bob.id]
    assert db_session.query(Match).count() == 0


def test_pairing_check_with_fewer_than_two(queue, make_player):
    alice = make_player("Alice")
    assert queue.pairing_check("chicago") is None
    queue.join(alice.id)
    assert queue.pairing_check("chicago") is None


def test_pairing_uses_injected_lifecycle(db_session, store, clock, make_player):
    created = []

    class RecordingLifecycle(MatchLifecycle):
        def create(self, player1_id, player2_id, *, commit=True):
            created.append((player1_id, player2_id, commit))
            return super().create(player1_id, player2_id, commit=commit)

    lifecycle = RecordingLifecycle(db_session, players=store, clock=clock)
    queue = QueueManager(db_session, players=store, lifecycle=lifecycle, clock=clock)
    alice, bob = make_player("Alice"), make_player("Bob")

    queue.join(alice.id)
    queue.join(bob.id)

    # Match and dequeue share one commit
    assert created == [(alice.id, bob.id, False)]
