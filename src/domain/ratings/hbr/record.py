"""Immutable per-player rating snapshot."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Naive UTC form of ``value``; naive inputs are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class RatingTier(str, Enum):
    """Display bands, ordered from lowest to highest."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    DIAMOND = "Diamond"
    MASTER = "Master"
    GRANDMASTER = "Grandmaster"

    @property
    def min_rating(self) -> float:
        return _TIER_FLOORS[self]

    @classmethod
    def from_rating(cls, rating: float) -> RatingTier:
        tier = cls.BRONZE
        for candidate, floor in _TIER_FLOORS.items():
            if rating >= floor:
                tier = candidate
        return tier


_TIER_FLOORS: dict[RatingTier, float] = {
    RatingTier.BRONZE: float("-inf"),
    RatingTier.SILVER: 1200.0,
    RatingTier.GOLD: 1600.0,
    RatingTier.PLATINUM: 2000.0,
    RatingTier.DIAMOND: 2400.0,
    RatingTier.MASTER: 2800.0,
    RatingTier.GRANDMASTER: 3200.0,
}


@dataclass(frozen=True)
class PlayerRating:
    """A player's hidden battle rating at one point in time.

    Records are replaced, never mutated: every update goes through one of the
    ``with_*`` methods and the result is swapped into the rating store.
    """

    player_id: int
    rating: float
    uncertainty: float
    games_played: int
    last_updated: datetime
    in_placement: bool
    peak_rating: float
    win_streak: int = 0
    loss_streak: int = 0
    recent_performance: float = 1.0

    @classmethod
    def new(
        cls,
        player_id: int,
        *,
        rating: float,
        uncertainty: float,
        in_placement: bool = True,
        created_at: datetime | None = None,
    ) -> PlayerRating:
        return cls(
            player_id=player_id,
            rating=rating,
            uncertainty=uncertainty,
            games_played=0,
            last_updated=created_at or utc_now(),
            in_placement=in_placement,
            peak_rating=rating,
        )

    def effective_rating(self) -> float:
        """Conservative skill estimate used for grouping decisions."""
        return self.rating - (self.uncertainty * 0.5)

    def confidence(self, initial_uncertainty: float = 350.0) -> float:
        return max(0.0, min(1.0 - (self.uncertainty / initial_uncertainty), 1.0))

    def tier(self) -> RatingTier:
        return RatingTier.from_rating(self.rating)

    def with_updated_rating(
        self,
        new_rating: float,
        new_uncertainty: float,
        new_games_played: int,
        new_in_placement: bool,
        *,
        updated_at: datetime | None = None,
    ) -> PlayerRating:
        return replace(
            self,
            rating=new_rating,
            uncertainty=new_uncertainty,
            games_played=new_games_played,
            in_placement=new_in_placement,
            peak_rating=max(self.peak_rating, new_rating),
            last_updated=updated_at or utc_now(),
        )

    def with_updated_streaks(
        self,
        *,
        won: bool,
        performance_multiplier: float,
        weight: float,
    ) -> PlayerRating:
        """Advance the win/loss streak and smooth the recent-performance signal."""
        return replace(
            self,
            win_streak=self.win_streak + 1 if won else 0,
            loss_streak=0 if won else self.loss_streak + 1,
            recent_performance=(
                (1.0 - weight) * self.recent_performance + weight * performance_multiplier
            ),
        )

    def __str__(self) -> str:
        return (
            f"PlayerRating(player_id={self.player_id}, rating={self.rating:.1f}, "
            f"uncertainty={self.uncertainty:.1f}, games={self.games_played}, "
            f"tier={self.tier().value})"
        )


__all__ = ["PlayerRating", "RatingTier", "to_naive_utc", "utc_now"]
