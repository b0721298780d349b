"""Match-performance scoring: rating multipliers, trends and smurf signals."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from math import isfinite
from typing import Final

from domain.ratings.common import MatchPerformance, PerformanceTrend
from domain.ratings.hbr.errors import InvalidPerformanceDataError, NotInitializedError
from domain.ratings.hbr.record import PlayerRating

logger = logging.getLogger("hbr.performance")

MIN_MULTIPLIER: Final[float] = 0.5
MAX_MULTIPLIER: Final[float] = 2.0
MVP_BONUS: Final[float] = 0.15
TREND_SLOPE_THRESHOLD: Final[float] = 0.05
TREND_MIN_SAMPLES: Final[int] = 3
SMURF_MIN_SAMPLES: Final[int] = 5
SMURF_MAX_GAMES_PLAYED: Final[int] = 20
SMURF_SCORE_THRESHOLD: Final[float] = 1.5


def _bounded_factor(
    normalized: float,
    *,
    gain_slope: float,
    loss_slope: float,
    limit: float,
) -> float:
    # normalized == 1.0 is the baseline; gains and losses scale differently.
    if normalized >= 1.0:
        return min(limit, (normalized - 1.0) * gain_slope)
    return max(-limit, (normalized - 1.0) * loss_slope)


def kd_factor(performance: MatchPerformance) -> float:
    return _bounded_factor(performance.kd_ratio, gain_slope=0.2, loss_slope=0.3, limit=0.3)


def damage_factor(performance: MatchPerformance) -> float:
    return _bounded_factor(
        performance.damage_dealt / 1000.0, gain_slope=0.15, loss_slope=0.2, limit=0.2
    )


def accuracy_factor(performance: MatchPerformance) -> float:
    return _bounded_factor(
        performance.accuracy / 25.0, gain_slope=0.1, loss_slope=0.15, limit=0.15
    )


def objective_factor(performance: MatchPerformance) -> float:
    return _bounded_factor(
        performance.objective_score / 100.0, gain_slope=0.2, loss_slope=0.25, limit=0.25
    )


def performance_multiplier(performance: MatchPerformance | None) -> float:
    """Bounded scalar applied to a rating delta; 1.0 when no data was recorded."""
    if performance is None:
        return 1.0

    multiplier = (
        1.0
        + kd_factor(performance)
        + damage_factor(performance)
        + accuracy_factor(performance)
        + objective_factor(performance)
    )
    if performance.mvp:
        multiplier += MVP_BONUS

    return max(MIN_MULTIPLIER, min(multiplier, MAX_MULTIPLIER))


def composite_score(performance: MatchPerformance) -> float:
    """Weighted single-match score used for trends and smurf detection."""
    return (
        performance.kd_ratio * 0.3
        + (performance.damage_dealt / 1000.0) * 0.25
        + (performance.accuracy / 100.0) * 0.2
        + (performance.objective_score / 100.0) * 0.25
    )


def _slope(values: Sequence[float]) -> float:
    n = len(values)
    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for index, value in enumerate(values):
        sum_x += index
        sum_y += value
        sum_xy += index * value
        sum_x2 += index * index
    denominator = (n * sum_x2) - (sum_x * sum_x)
    if denominator == 0.0:
        return 0.0
    return ((n * sum_xy) - (sum_x * sum_y)) / denominator


def performance_trend(recent: Sequence[MatchPerformance]) -> PerformanceTrend:
    """Classify recent matches (oldest first) by least-squares slope of composite score."""
    if len(recent) < TREND_MIN_SAMPLES:
        return PerformanceTrend.INSUFFICIENT_DATA

    slope = _slope([composite_score(performance) for performance in recent])
    if slope > TREND_SLOPE_THRESHOLD:
        return PerformanceTrend.IMPROVING
    if slope < -TREND_SLOPE_THRESHOLD:
        return PerformanceTrend.DECLINING
    return PerformanceTrend.STABLE


def detect_potential_smurfing(rating: PlayerRating, recent: Sequence[MatchPerformance]) -> bool:
    """Flag new accounts that consistently perform far above baseline."""
    if len(recent) < SMURF_MIN_SAMPLES:
        return False
    if rating.games_played >= SMURF_MAX_GAMES_PLAYED:
        return False

    average = sum(composite_score(performance) for performance in recent) / len(recent)
    return average > SMURF_SCORE_THRESHOLD


def validate_performance(performance: object, *, player_id: int | None = None) -> MatchPerformance:
    """Return the payload unchanged or raise InvalidPerformanceDataError."""
    if not isinstance(performance, MatchPerformance):
        raise InvalidPerformanceDataError(
            f"expected MatchPerformance, got {type(performance).__name__}",
            player_id=player_id,
        )

    for name in ("kills", "deaths", "assists", "damage_dealt", "accuracy", "objective_score"):
        value = getattr(performance, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidPerformanceDataError(
                f"{name} must be numeric, got {value!r}", player_id=player_id
            )
        if not isfinite(value):
            raise InvalidPerformanceDataError(f"{name} must be finite", player_id=player_id)

    for name in ("kills", "deaths", "assists", "damage_dealt"):
        if getattr(performance, name) < 0:
            raise InvalidPerformanceDataError(f"{name} must be >= 0", player_id=player_id)
    if performance.accuracy < 0.0 or performance.accuracy > 100.0:
        raise InvalidPerformanceDataError(
            f"accuracy must be between 0 and 100, got {performance.accuracy}",
            player_id=player_id,
        )
    if player_id is not None and performance.player_id != player_id:
        raise InvalidPerformanceDataError(
            f"payload belongs to player_id={performance.player_id}", player_id=player_id
        )

    return performance


class PerformanceAnalyzer:
    """Engine-owned front end to the scoring functions."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._initialized = True
        logger.info("performance analyzer initialized")

    def close(self) -> None:
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("PerformanceAnalyzer is not initialized")

    def calculate_multiplier(self, performance: object, *, player_id: int | None = None) -> float:
        """Multiplier for one player, with malformed payloads treated as neutral."""
        self._require_initialized()
        if performance is None:
            return 1.0
        try:
            return performance_multiplier(validate_performance(performance, player_id=player_id))
        except InvalidPerformanceDataError as exc:
            logger.warning(
                "invalid performance data for player_id=%s, using neutral multiplier: %s",
                player_id,
                exc,
            )
            return 1.0

    def analyze_trend(self, recent: Sequence[MatchPerformance]) -> PerformanceTrend:
        self._require_initialized()
        return performance_trend(recent)

    def detect_potential_smurfing(
        self, rating: PlayerRating, recent: Sequence[MatchPerformance]
    ) -> bool:
        self._require_initialized()
        return detect_potential_smurfing(rating, recent)


__all__ = [
    "PerformanceAnalyzer",
    "composite_score",
    "detect_potential_smurfing",
    "performance_multiplier",
    "performance_trend",
    "validate_performance",
]
