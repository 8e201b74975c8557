"""
Matchmaking and match lifecycle.

- MatchLifecycle: create/report/cancel with the pending -> completed|cancelled
  state machine
- QueueManager: per-office FIFO queue that pairs players into matches
"""

from ladder.matches.lifecycle import MatchLifecycle, ReportResult
from ladder.matches.queue import JoinResult, QueueManager

__all__ = [
    "MatchLifecycle",
    "ReportResult",
    "QueueManager",
    "JoinResult",
]
