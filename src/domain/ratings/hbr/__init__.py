"""Hidden battle rating modules."""

from domain.ratings.hbr.calculator import RatingCalculator, calculate_expected_score
from domain.ratings.hbr.config import (
    HbrParameters,
    HbrSystemConfig,
    load_hbr_system_config,
    load_hbr_system_configs,
    validate_parameters,
)
from domain.ratings.hbr.engine import HiddenBattleRatingEngine
from domain.ratings.hbr.errors import (
    ConfigurationError,
    HbrError,
    InvalidPerformanceDataError,
    NotInitializedError,
)
from domain.ratings.hbr.performance import (
    PerformanceAnalyzer,
    composite_score,
    detect_potential_smurfing,
    performance_multiplier,
    performance_trend,
)
from domain.ratings.hbr.record import PlayerRating, RatingTier
from domain.ratings.hbr.store import RatingStore
from domain.ratings.hbr.uncertainty import UncertaintyManager

__all__ = [
    "ConfigurationError",
    "HbrError",
    "HbrParameters",
    "HbrSystemConfig",
    "HiddenBattleRatingEngine",
    "InvalidPerformanceDataError",
    "NotInitializedError",
    "PerformanceAnalyzer",
    "PlayerRating",
    "RatingCalculator",
    "RatingStore",
    "RatingTier",
    "UncertaintyManager",
    "calculate_expected_score",
    "composite_score",
    "detect_potential_smurfing",
    "load_hbr_system_config",
    "load_hbr_system_configs",
    "performance_multiplier",
    "performance_trend",
    "validate_parameters",
]
