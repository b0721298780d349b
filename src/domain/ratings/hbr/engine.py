"""Hidden battle rating engine: owns the rating store and applies match results."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime
from statistics import fmean, pstdev

from domain.ratings.common import (
    MatchPerformance,
    MatchResult,
    PerformanceTrend,
    PlayerHbrEvent,
    RatingChange,
    RatingStatistics,
)
from domain.ratings.hbr.calculator import RatingCalculator
from domain.ratings.hbr.config import HbrParameters, validate_parameters
from domain.ratings.hbr.errors import InvalidPerformanceDataError, NotInitializedError
from domain.ratings.hbr.performance import PerformanceAnalyzer, validate_performance
from domain.ratings.hbr.record import PlayerRating, to_naive_utc, utc_now
from domain.ratings.hbr.store import RatingStore
from domain.ratings.hbr.uncertainty import UncertaintyManager

logger = logging.getLogger("hbr.engine")


class HiddenBattleRatingEngine:
    """Stateful match-by-match player rating engine.

    Construct with validated parameters, call ``initialize()`` once, then feed
    completed matches through ``apply_match_result``. The engine expects the
    caller to never resolve two matches for the same player concurrently.
    """

    def __init__(self, params: HbrParameters | None = None) -> None:
        self.params = params or HbrParameters()
        validate_parameters(self.params)

        self.calculator = RatingCalculator(self.params)
        self.uncertainty_manager = UncertaintyManager(self.params)
        self.performance_analyzer = PerformanceAnalyzer()

        self._store = RatingStore(self._new_rating)
        self._history: dict[int, deque[MatchPerformance]] = {}
        self._history_lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def created_count(self) -> int:
        """Number of players created lazily since the engine started."""
        return self._store.created_count

    def initialize(self) -> None:
        if self._initialized:
            return

        logger.info("initializing rating engine")
        try:
            self.calculator.initialize()
            self.uncertainty_manager.initialize()
            self.performance_analyzer.initialize()
        except Exception:
            logger.exception("rating engine initialization failed")
            self._close_components()
            raise

        self._initialized = True
        logger.info("rating engine initialized")

    def close(self) -> None:
        logger.info("closing rating engine players=%d", len(self._store))
        self._store.clear()
        with self._history_lock:
            self._history.clear()
        self._close_components()
        self._initialized = False

    def _close_components(self) -> None:
        self.calculator.close()
        self.uncertainty_manager.close()
        self.performance_analyzer.close()

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("HiddenBattleRatingEngine is not initialized")

    def _new_rating(self, player_id: int) -> PlayerRating:
        record = PlayerRating.new(
            player_id,
            rating=self.params.initial_rating,
            uncertainty=self.params.initial_uncertainty,
            in_placement=self.params.placement_match_count > 0,
        )
        logger.debug(
            "created rating player_id=%s rating=%.1f uncertainty=%.1f",
            player_id,
            record.rating,
            record.uncertainty,
        )
        return record

    # Queries

    def get_or_create_rating(self, player_id: int) -> PlayerRating:
        self._require_initialized()
        return self._store.get_or_create(player_id)

    def ratings(self) -> dict[int, PlayerRating]:
        """Return a snapshot of current player ratings."""
        self._require_initialized()
        return self._store.snapshot()

    def tracked_player_count(self) -> int:
        self._require_initialized()
        return len(self._store)

    def team_rating(self, player_ids: Sequence[int]) -> float:
        """Arithmetic mean rating of a roster."""
        self._require_initialized()
        if not player_ids:
            return self.params.initial_rating
        return fmean(self._store.get_or_create(player_id).rating for player_id in player_ids)

    def rating_difference(self, player_id1: int, player_id2: int) -> float:
        self._require_initialized()
        rating1 = self._store.get_or_create(player_id1).rating
        rating2 = self._store.get_or_create(player_id2).rating
        return abs(rating1 - rating2)

    def are_compatible(self, player_id1: int, player_id2: int, max_difference: float) -> bool:
        return self.rating_difference(player_id1, player_id2) <= max_difference

    def predict_match_quality(self, team1: Sequence[int], team2: Sequence[int]) -> float:
        self._require_initialized()
        team1_records = [self._store.get_or_create(player_id) for player_id in team1]
        team2_records = [self._store.get_or_create(player_id) for player_id in team2]
        return self.calculator.calculate_match_quality(
            self.team_rating(team1),
            self.team_rating(team2),
            self.uncertainty_manager.team_uncertainty(team1_records),
            self.uncertainty_manager.team_uncertainty(team2_records),
        )

    def rating_statistics(self) -> RatingStatistics:
        self._require_initialized()
        values = [record.rating for record in self._store.snapshot().values()]
        if not values:
            return RatingStatistics(
                player_count=0,
                average_rating=0.0,
                standard_deviation=0.0,
                min_rating=0.0,
                max_rating=0.0,
            )
        return RatingStatistics(
            player_count=len(values),
            average_rating=fmean(values),
            standard_deviation=pstdev(values),
            min_rating=min(values),
            max_rating=max(values),
        )

    def recent_performances(self, player_id: int) -> list[MatchPerformance]:
        self._require_initialized()
        history = self._history.get(player_id)
        return list(history) if history is not None else []

    def performance_trend(self, player_id: int) -> PerformanceTrend:
        return self.performance_analyzer.analyze_trend(self.recent_performances(player_id))

    def is_potential_smurf(self, player_id: int) -> bool:
        recent = self.recent_performances(player_id)
        return self.performance_analyzer.detect_potential_smurfing(
            self._store.get_or_create(player_id), recent
        )

    def inactivity_adjusted_rating(self, player_id: int, as_of: datetime) -> PlayerRating:
        """Stored record with uncertainty widened for time spent inactive; not persisted."""
        self._require_initialized()
        return self._with_inactivity(self._store.get_or_create(player_id), as_of)

    # Updates

    def load_ratings(self, records: Iterable[PlayerRating]) -> int:
        """Hydrate the store from an external snapshot."""
        self._require_initialized()
        loaded = self._store.put_all(records)
        logger.info("loaded %d player ratings", loaded)
        return loaded

    def apply_match_result(self, match_result: MatchResult) -> list[PlayerHbrEvent]:
        self._require_initialized()

        overlap = set(match_result.winners) & set(match_result.losers)
        if overlap:
            raise ValueError(
                f"match_id={match_result.match_id} lists players on both sides: {sorted(overlap)}"
            )
        for side in (match_result.winners, match_result.losers):
            if len(set(side)) != len(side):
                raise ValueError(
                    f"match_id={match_result.match_id} lists a player twice on one side: {list(side)}"
                )

        # Both averages come from pre-match ratings so update order cannot matter.
        winner_team_rating = self.team_rating(match_result.winners)
        loser_team_rating = self.team_rating(match_result.losers)

        events: list[PlayerHbrEvent] = []
        sides = (
            (match_result.winners, winner_team_rating, loser_team_rating, 1.0),
            (match_result.losers, loser_team_rating, winner_team_rating, 0.0),
        )
        for players, team_rating, opponent_rating, score in sides:
            for player_id in players:
                try:
                    events.append(
                        self._update_player(
                            player_id,
                            team_rating=team_rating,
                            opponent_rating=opponent_rating,
                            score=score,
                            match_result=match_result,
                        )
                    )
                except Exception:
                    logger.exception(
                        "rating update failed match_id=%s player_id=%s",
                        match_result.match_id,
                        player_id,
                    )

        logger.info(
            "applied match match_id=%s players=%d updated=%d winner_rating=%.1f loser_rating=%.1f",
            match_result.match_id,
            len(match_result.roster),
            len(events),
            winner_team_rating,
            loser_team_rating,
        )
        return events

    def _update_player(
        self,
        player_id: int,
        *,
        team_rating: float,
        opponent_rating: float,
        score: float,
        match_result: MatchResult,
    ) -> PlayerHbrEvent:
        performance = match_result.performances.get(player_id)
        multiplier = self.performance_analyzer.calculate_multiplier(performance, player_id=player_id)
        event_time = (
            utc_now() if match_result.event_time is None else to_naive_utc(match_result.event_time)
        )
        changes: list[RatingChange] = []

        def update(current: PlayerRating) -> PlayerRating:
            current = self._with_inactivity(current, event_time)
            change = self.calculator.calculate_rating_change(
                current, team_rating, opponent_rating, score, multiplier
            )
            new_uncertainty = self.uncertainty_manager.update_uncertainty(current, change)
            games_played = current.games_played + 1
            changes.append(change)
            return current.with_updated_rating(
                current.rating + change.rating_delta,
                new_uncertainty,
                games_played,
                current.in_placement and games_played < self.params.placement_match_count,
                updated_at=event_time,
            ).with_updated_streaks(
                won=score == 1.0,
                performance_multiplier=multiplier,
                weight=self.params.recent_performance_weight,
            )

        previous, stored = self._store.compute(player_id, update)
        change = changes[-1]

        if previous.in_placement and not stored.in_placement:
            logger.info(
                "placement complete player_id=%s rating=%.1f tier=%s",
                player_id,
                stored.rating,
                stored.tier().value,
            )
        logger.debug(
            "updated rating player_id=%s old=%.1f new=%.1f delta=%.2f uncertainty=%.1f games=%d",
            player_id,
            previous.rating,
            stored.rating,
            change.rating_delta,
            stored.uncertainty,
            stored.games_played,
        )

        self._record_performance(stored, performance)

        return PlayerHbrEvent(
            player_id=player_id,
            match_id=match_result.match_id,
            won=score == 1.0,
            actual_score=change.actual_score,
            expected_score=change.expected_score,
            pre_rating=previous.rating,
            rating_delta=change.rating_delta,
            post_rating=stored.rating,
            pre_uncertainty=previous.uncertainty,
            post_uncertainty=stored.uncertainty,
            performance_multiplier=multiplier,
            k_factor=change.k_factor,
            games_played=stored.games_played,
            in_placement=stored.in_placement,
        )

    def _record_performance(self, record: PlayerRating, performance: object) -> None:
        if performance is None:
            return
        try:
            validated = validate_performance(performance, player_id=record.player_id)
        except InvalidPerformanceDataError:
            return

        history = self._history.get(record.player_id)
        if history is None:
            with self._history_lock:
                history = self._history.setdefault(
                    record.player_id, deque(maxlen=self.params.performance_history_size)
                )
        history.append(validated)

        if self.performance_analyzer.detect_potential_smurfing(record, list(history)):
            logger.warning(
                "potential smurf player_id=%s games=%d rating=%.1f",
                record.player_id,
                record.games_played,
                record.rating,
            )

    def _with_inactivity(self, current: PlayerRating, as_of: datetime) -> PlayerRating:
        uncertainty = self.uncertainty_manager.inactivity_uncertainty(current, as_of)
        if uncertainty == current.uncertainty:
            return current
        return replace(current, uncertainty=uncertainty)

    def apply_seasonal_decay(self) -> int:
        """Pull every rating toward ``initial_rating`` and widen its uncertainty."""
        self._require_initialized()
        if not self.params.enable_seasonal_decay:
            return 0

        logger.info("applying seasonal decay players=%d", len(self._store))
        retention = self.params.seasonal_decay_rate
        uncertainty_cap = self.params.initial_uncertainty * 0.5

        def decay(current: PlayerRating) -> PlayerRating:
            rating = current.rating + (
                (self.params.initial_rating - current.rating) * (1.0 - retention)
            )
            grown = min(current.uncertainty * self.params.seasonal_uncertainty_growth, uncertainty_cap)
            uncertainty = self.uncertainty_manager.clamp(max(current.uncertainty, grown))
            return current.with_updated_rating(
                rating,
                uncertainty,
                current.games_played,
                current.in_placement,
                # last_updated tracks played matches; decay leaves the inactivity clock alone.
                updated_at=current.last_updated,
            )

        affected = 0
        for player_id in self._store.player_ids():
            self._store.compute(player_id, decay)
            affected += 1

        logger.info("seasonal decay applied players=%d", affected)
        return affected


__all__ = ["HiddenBattleRatingEngine"]
