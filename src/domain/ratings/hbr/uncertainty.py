"""Confidence-band updates for player ratings."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from math import sqrt

from domain.ratings.common import RatingChange
from domain.ratings.hbr.config import HbrParameters
from domain.ratings.hbr.errors import NotInitializedError
from domain.ratings.hbr.record import PlayerRating

logger = logging.getLogger("hbr.uncertainty")


class UncertaintyManager:
    """Shrinks uncertainty with games played and widens it on surprising results."""

    def __init__(self, params: HbrParameters) -> None:
        self.params = params
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._initialized = True
        logger.info("uncertainty manager initialized")

    def close(self) -> None:
        self._initialized = False

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("UncertaintyManager is not initialized")

    def clamp(self, uncertainty: float) -> float:
        return max(self.params.min_uncertainty, min(uncertainty, self.params.initial_uncertainty))

    def update_uncertainty(self, current: PlayerRating, change: RatingChange) -> float:
        self._require_initialized()

        if current.in_placement:
            reduction = self.params.placement_uncertainty_reduction
        else:
            reduction = self.params.established_uncertainty_reduction

        volatility = (
            self.params.volatility_uncertainty_weight
            * abs(change.rating_delta)
            / self.params.max_rating_change
        )
        surprise = self.params.surprise_uncertainty_weight * change.surprise

        updated = (current.uncertainty * self.params.uncertainty_decay_rate) - reduction
        return self.clamp(updated + volatility + surprise)

    def inactivity_uncertainty(self, current: PlayerRating, as_of: datetime) -> float:
        """Uncertainty after a period without matches; never lower than the current band."""
        self._require_initialized()
        inactive_days = int((as_of - current.last_updated).total_seconds() // 86_400)
        overdue_days = inactive_days - self.params.inactivity_grace_days
        if overdue_days <= 0:
            return current.uncertainty

        grown = current.uncertainty + overdue_days * self.params.inactivity_uncertainty_per_day
        return min(self.params.initial_uncertainty, grown)

    def team_uncertainty(self, records: Sequence[PlayerRating]) -> float:
        """Root mean square of member uncertainties."""
        self._require_initialized()
        if not records:
            return self.params.initial_uncertainty
        return sqrt(sum(record.uncertainty**2 for record in records) / len(records))


__all__ = ["UncertaintyManager"]
