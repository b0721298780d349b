"""Unit tests for the HBR rating-change calculator."""

from __future__ import annotations

from datetime import datetime

import pytest

from domain.ratings.hbr.calculator import RatingCalculator, calculate_expected_score
from domain.ratings.hbr.config import HbrParameters
from domain.ratings.hbr.errors import NotInitializedError
from domain.ratings.hbr.record import PlayerRating


def _calculator(**overrides: object) -> RatingCalculator:
    calculator = RatingCalculator(HbrParameters(**overrides))  # type: ignore[arg-type]
    calculator.initialize()
    return calculator


def _rating(rating: float = 1500.0, uncertainty: float = 350.0) -> PlayerRating:
    return PlayerRating(
        player_id=1,
        rating=rating,
        uncertainty=uncertainty,
        games_played=0,
        last_updated=datetime(2026, 1, 1),
        in_placement=True,
        peak_rating=rating,
    )


def test_expected_score_for_equal_ratings_is_half() -> None:
    assert calculate_expected_score(1500.0, 1500.0, 400.0) == pytest.approx(0.5)


def test_expected_score_is_complementary() -> None:
    forward = calculate_expected_score(1700.0, 1500.0, 400.0)
    backward = calculate_expected_score(1500.0, 1700.0, 400.0)
    assert forward > 0.5
    assert forward + backward == pytest.approx(1.0)
    assert calculate_expected_score(1900.0, 1500.0, 400.0) == pytest.approx(10.0 / 11.0)


def test_equal_players_move_symmetrically() -> None:
    calculator = _calculator()
    winner = calculator.calculate_rating_change(_rating(), 1500.0, 1500.0, 1.0)
    loser = calculator.calculate_rating_change(_rating(), 1500.0, 1500.0, 0.0)

    assert winner.rating_delta == pytest.approx(32.0)
    assert loser.rating_delta == pytest.approx(-32.0)
    assert winner.expected_score == pytest.approx(0.5)
    assert winner.actual_score == 1.0


def test_k_factor_scales_with_uncertainty_and_floors_at_minimum() -> None:
    calculator = _calculator()
    assert calculator.k_factor(_rating(uncertainty=350.0)) == pytest.approx(64.0)
    assert calculator.k_factor(_rating(uncertainty=175.0)) == pytest.approx(32.0)
    assert calculator.k_factor(_rating(uncertainty=50.0)) == pytest.approx(16.0)


def test_upset_win_gains_more_than_expected_win() -> None:
    calculator = _calculator()
    newcomer = _rating(rating=1500.0, uncertainty=350.0)

    upset = calculator.calculate_rating_change(newcomer, 1500.0, 1800.0, 1.0)
    routine = calculator.calculate_rating_change(newcomer, 1500.0, 1500.0, 1.0)

    assert upset.rating_delta > routine.rating_delta > 0.0
    assert upset.surprise > routine.surprise


def test_stronger_performance_never_shrinks_the_change() -> None:
    calculator = _calculator()
    multipliers = [0.5, 1.0, 1.5, 2.0]

    for score in (1.0, 0.0):
        magnitudes = [
            abs(calculator.calculate_rating_change(_rating(), 1500.0, 1600.0, score, m).rating_delta)
            for m in multipliers
        ]
        assert magnitudes == sorted(magnitudes)


def test_change_is_capped_and_keeps_its_sign() -> None:
    calculator = _calculator(max_rating_change=10.0)

    gain = calculator.calculate_rating_change(_rating(), 1500.0, 2200.0, 1.0, 2.0)
    loss = calculator.calculate_rating_change(_rating(), 2200.0, 1500.0, 0.0, 2.0)

    assert gain.rating_delta == pytest.approx(10.0)
    assert loss.rating_delta == pytest.approx(-10.0)


def test_winner_never_loses_and_loser_never_gains() -> None:
    calculator = _calculator()
    for team_rating, opponent_rating in ((1000.0, 3000.0), (3000.0, 1000.0), (1500.0, 1500.0)):
        win = calculator.calculate_rating_change(_rating(), team_rating, opponent_rating, 1.0, 0.5)
        loss = calculator.calculate_rating_change(_rating(), team_rating, opponent_rating, 0.0, 2.0)
        assert win.rating_delta >= 0.0
        assert loss.rating_delta <= 0.0


def test_invalid_inputs_are_rejected() -> None:
    calculator = _calculator()
    with pytest.raises(ValueError, match="score"):
        calculator.calculate_rating_change(_rating(), 1500.0, 1500.0, 0.5)
    with pytest.raises(ValueError, match="performance_multiplier"):
        calculator.calculate_rating_change(_rating(), 1500.0, 1500.0, 1.0, -1.0)


def test_calculator_requires_initialization() -> None:
    calculator = RatingCalculator(HbrParameters())
    with pytest.raises(NotInitializedError):
        calculator.calculate_rating_change(_rating(), 1500.0, 1500.0, 1.0)


def test_match_quality_rewards_close_confident_teams() -> None:
    calculator = _calculator()

    assert calculator.calculate_match_quality(1500.0, 1500.0, 0.0, 0.0) == pytest.approx(1.0)
    assert calculator.calculate_match_quality(1500.0, 1500.0, 350.0, 350.0) == pytest.approx(0.7)
    assert calculator.calculate_match_quality(1500.0, 1900.0, 350.0, 350.0) == pytest.approx(0.0)
    assert calculator.calculate_match_quality(1500.0, 1700.0, 175.0, 175.0) == pytest.approx(
        0.35 + 0.15
    )
