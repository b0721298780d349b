"""Shared types for the hidden battle rating engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class MatchPerformance:
    """Per-player match stats supplied by the match-resolution service."""

    player_id: int
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage_dealt: float = 0.0
    accuracy: float = 0.0
    objective_score: int = 0
    mvp: bool = False

    @property
    def kd_ratio(self) -> float:
        if self.deaths > 0:
            return self.kills / self.deaths
        return float(self.kills)


@dataclass(frozen=True)
class MatchResult:
    """Canonical completed-match payload consumed by the rating engine."""

    match_id: str
    winners: tuple[int, ...]
    losers: tuple[int, ...]
    performances: Mapping[int, MatchPerformance] = field(default_factory=dict)
    event_time: datetime | None = None
    duration_seconds: float | None = None
    was_forfeited: bool = False

    @property
    def roster(self) -> tuple[int, ...]:
        return self.winners + self.losers


@dataclass(frozen=True)
class RatingChange:
    """Outcome of one rating calculation; never stored."""

    rating_delta: float
    expected_score: float
    actual_score: float
    k_factor: float
    performance_multiplier: float

    @property
    def surprise(self) -> float:
        return abs(self.actual_score - self.expected_score)


@dataclass(frozen=True)
class PlayerHbrEvent:
    player_id: int
    match_id: str
    won: bool
    actual_score: float
    expected_score: float
    pre_rating: float
    rating_delta: float
    post_rating: float
    pre_uncertainty: float
    post_uncertainty: float
    performance_multiplier: float
    k_factor: float
    games_played: int
    in_placement: bool


@dataclass(frozen=True)
class RatingStatistics:
    """Population summary over every tracked player."""

    player_count: int
    average_rating: float
    standard_deviation: float
    min_rating: float
    max_rating: float


class PerformanceTrend(str, Enum):
    """Direction of a player's recent performance."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    INSUFFICIENT_DATA = "insufficient_data"


__all__ = [
    "MatchPerformance",
    "MatchResult",
    "PerformanceTrend",
    "PlayerHbrEvent",
    "RatingChange",
    "RatingStatistics",
]
