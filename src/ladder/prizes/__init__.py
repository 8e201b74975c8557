"""Weekly prize eligibility."""

from ladder.prizes.engine import PrizeEngine, PrizeResult, WeeklyStats

__all__ = ["PrizeEngine", "PrizeResult", "WeeklyStats"]
