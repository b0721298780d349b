"""Elo-style rating deltas scaled by uncertainty and match performance."""

from __future__ import annotations

import logging

from domain.ratings.common import RatingChange
from domain.ratings.hbr.config import HbrParameters
from domain.ratings.hbr.errors import NotInitializedError
from domain.ratings.hbr.record import PlayerRating

logger = logging.getLogger("hbr.calculator")


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


class RatingCalculator:
    """Computes per-player rating changes from team-level expectations."""

    def __init__(self, params: HbrParameters) -> None:
        self.params = params
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._initialized = True
        logger.info("rating calculator initialized")

    def close(self) -> None:
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("RatingCalculator is not initialized")

    def k_factor(self, current: PlayerRating) -> float:
        """Larger for unconverged players, never below ``k_factor_min``."""
        scaled = self.params.k_factor_max * (current.uncertainty / self.params.initial_uncertainty)
        return max(self.params.k_factor_min, scaled)

    def calculate_rating_change(
        self,
        current: PlayerRating,
        team_rating: float,
        opponent_rating: float,
        score: float,
        performance_multiplier: float = 1.0,
    ) -> RatingChange:
        self._require_initialized()
        if score not in (0.0, 1.0):
            raise ValueError(f"score must be 0 or 1, got {score}")
        if performance_multiplier < 0.0:
            raise ValueError(f"performance_multiplier must be >= 0, got {performance_multiplier}")

        expected = calculate_expected_score(
            rating=team_rating,
            opponent_rating=opponent_rating,
            scale_factor=self.params.scale_factor,
        )
        k_factor = self.k_factor(current)
        raw_delta = k_factor * (score - expected) * performance_multiplier

        cap = self.params.max_rating_change
        delta = max(-cap, min(raw_delta, cap))

        return RatingChange(
            rating_delta=delta,
            expected_score=expected,
            actual_score=float(score),
            k_factor=k_factor,
            performance_multiplier=performance_multiplier,
        )

    def calculate_match_quality(
        self,
        team1_rating: float,
        team2_rating: float,
        team1_uncertainty: float,
        team2_uncertainty: float,
    ) -> float:
        """Score in [0, 1]; close ratings and confident ratings both raise it."""
        self._require_initialized()
        rating_gap = abs(team1_rating - team2_rating)
        rating_quality = max(0.0, 1.0 - (rating_gap / self.params.scale_factor))

        average_uncertainty = (team1_uncertainty + team2_uncertainty) / 2.0
        uncertainty_quality = max(
            0.0, 1.0 - (average_uncertainty / self.params.initial_uncertainty)
        )

        return (rating_quality * 0.7) + (uncertainty_quality * 0.3)


__all__ = ["RatingCalculator", "calculate_expected_score"]
