#!/usr/bin/env python3
"""
Seed the ladder with sample players.

Only inserts when the players table is empty, so it is safe to run on
every deploy of a development environment.

Usage:
    python scripts/seed_players.py
    python scripts/seed_players.py --force   # add samples even if players exist
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ladder.config import configure_logging
from ladder.db.models import Player
from ladder.db.session import get_session
from ladder.players.store import PlayerStore

logger = logging.getLogger(__name__)

SAMPLE_PLAYERS = [
    ("Alice Johnson", "alice@company.com", "U01234567", "chicago"),
    ("Bob Smith", "bob@company.com", "U01234568", "chicago"),
    ("Carol Davis", "carol@company.com", "U01234569", "new york"),
    ("David Wilson", "david@company.com", "U01234570", "new york"),
    ("Eve Brown", "eve@company.com", "U01234571", "tempe"),
    ("Frank Miller", "frank@company.com", "U01234572", "tempe"),
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Insert sample ladder players")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Insert samples even when players already exist",
    )
    args = parser.parse_args()
    configure_logging()

    with get_session() as session:
        existing = session.query(Player).count()
        if existing and not args.force:
            logger.info("Players table has %d rows; skipping seed", existing)
            return 0

        store = PlayerStore(session, allowed_offices=[])
        created = 0
        for name, email, chat_user_id, office in SAMPLE_PLAYERS:
            if store.find_by_chat_user(chat_user_id) is not None:
                continue
            store.register(name, office, email=email, chat_user_id=chat_user_id)
            created += 1

    print(f"Seeded {created} players")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
