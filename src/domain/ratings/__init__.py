"""Rating-system domain modules."""

from domain.ratings.common import (
    MatchPerformance,
    MatchResult,
    PerformanceTrend,
    PlayerHbrEvent,
    RatingChange,
    RatingStatistics,
)

__all__ = [
    "MatchPerformance",
    "MatchResult",
    "PerformanceTrend",
    "PlayerHbrEvent",
    "RatingChange",
    "RatingStatistics",
]
