"""
Office Ladder - game ladder tracker for office leagues

Players register with their office, get paired through a per-office
matchmaking queue (or challenge each other directly), report results,
and compete for weekly prizes.

Main components:
- players: Player registry (PlayerStore)
- matches: Matchmaking queue and match lifecycle
- prizes: Weekly prize eligibility
- leaderboard: Ranked win/loss view
- web: FastAPI JSON API
- chat: Slash-command adapter
"""

__version__ = "1.0.0"
