#!/usr/bin/env python3
"""
Re-run weekly prize evaluation.

Prize evaluation after a match report can fail after the result was
saved. Evaluation is idempotent, so this script simply re-evaluates every
player with a completed match in the week and awards anything missing
(including three_losses prizes for players who only lost).

Usage:
    python scripts/reconcile_prizes.py                  # current week
    python scripts/reconcile_prizes.py --week 2026-10-11
    python scripts/reconcile_prizes.py --weeks-back 1   # last week
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ladder.config import configure_logging
from ladder.db.session import get_session
from ladder.prizes.engine import PrizeEngine
from ladder.weeks import local_now, week_start


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcile weekly prizes")
    parser.add_argument(
        "--week",
        type=date.fromisoformat,
        default=None,
        help="Any date inside the week to reconcile (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--weeks-back",
        type=int,
        default=0,
        help="Reconcile N weeks before the current one (ignored with --week)",
    )
    args = parser.parse_args()
    configure_logging()

    if args.week is not None:
        target = week_start(args.week)
    else:
        target = week_start(local_now()) - timedelta(weeks=args.weeks_back)

    with get_session() as session:
        awarded = PrizeEngine(session).reconcile_week(target)
        for result in awarded:
            print(f"  player {result.player_id} {result.category}: prize {result.prize_id} ({result.wins}W/{result.losses}L)")

    print(f"Week {target}: {len(awarded)} prizes awarded")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
