"""HBR parameters and TOML system definitions."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from math import isfinite
from pathlib import Path
from typing import Any

from domain.config_base import BaseSystemConfig, load_system_config, load_system_configs
from domain.ratings.hbr.errors import ConfigurationError


@dataclass(frozen=True)
class HbrParameters:
    initial_rating: float = 1500.0
    initial_uncertainty: float = 350.0
    min_uncertainty: float = 50.0
    placement_match_count: int = 10
    k_factor_max: float = 64.0
    k_factor_min: float = 16.0
    scale_factor: float = 400.0
    max_rating_change: float = 150.0
    uncertainty_decay_rate: float = 0.95
    placement_uncertainty_reduction: float = 15.0
    established_uncertainty_reduction: float = 5.0
    surprise_uncertainty_weight: float = 8.0
    volatility_uncertainty_weight: float = 10.0
    enable_seasonal_decay: bool = True
    # Share of the distance from initial_rating a rating keeps after a season.
    seasonal_decay_rate: float = 0.9
    seasonal_uncertainty_growth: float = 1.1
    inactivity_grace_days: float = 7.0
    inactivity_uncertainty_per_day: float = 2.0
    recent_performance_weight: float = 0.3
    performance_history_size: int = 10


@dataclass(frozen=True)
class HbrSystemConfig(BaseSystemConfig):
    """Configuration for one HBR engine instance."""

    parameters: HbrParameters

    def as_config_json(self) -> dict[str, Any]:
        return asdict(self.parameters)


def load_hbr_system_configs(config_dir: Path) -> list[HbrSystemConfig]:
    """Load and validate all HBR TOML config files in a directory."""
    return load_system_configs(
        config_dir,
        _parse_hbr_system_config,
        duplicate_name_label="hbr",
    )


def load_hbr_system_config(file_path: Path) -> HbrSystemConfig:
    """Load and validate a single HBR TOML config file."""
    return load_system_config(file_path, _parse_hbr_system_config)


def _parse_hbr_system_config(raw: dict[str, Any], file_path: Path) -> HbrSystemConfig:
    system_raw = raw.get("system", {})
    hbr_raw = raw.get("hbr", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ConfigurationError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    defaults = HbrParameters()
    unknown = sorted(set(hbr_raw) - set(asdict(defaults)))
    if unknown:
        raise ConfigurationError(f"{file_path}: unknown [hbr] keys: {unknown}")

    values: dict[str, Any] = {}
    for key, default in asdict(defaults).items():
        value = hbr_raw.get(key, default)
        if not _matches_type(value, default):
            raise ConfigurationError(
                f"{file_path}: invalid [hbr] value: {key} must be "
                f"{type(default).__name__}, got {value!r}"
            )
        values[key] = float(value) if isinstance(default, float) else value
    parameters = HbrParameters(**values)

    validate_parameters(parameters, source=str(file_path))

    return HbrSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
    )


def _matches_type(value: Any, default: Any) -> bool:
    # bool is an int subclass; TOML integers are accepted where a float is expected.
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)
    if isinstance(default, int):
        return isinstance(value, int)
    return isinstance(value, (int, float))


def validate_parameters(parameters: HbrParameters, *, source: str = "hbr") -> None:
    """Raise ConfigurationError for any threshold the engine cannot run with."""
    for key, value in asdict(parameters).items():
        if isinstance(value, float) and not isfinite(value):
            raise ConfigurationError(f"{source}: [hbr].{key} must be finite")

    if parameters.initial_uncertainty <= 0.0:
        raise ConfigurationError(f"{source}: [hbr].initial_uncertainty must be > 0")
    if parameters.min_uncertainty < 0.0:
        raise ConfigurationError(f"{source}: [hbr].min_uncertainty must be >= 0")
    if parameters.min_uncertainty > parameters.initial_uncertainty:
        raise ConfigurationError(
            f"{source}: [hbr].min_uncertainty must be <= initial_uncertainty"
        )
    if parameters.placement_match_count < 0:
        raise ConfigurationError(f"{source}: [hbr].placement_match_count must be >= 0")
    if parameters.k_factor_min <= 0.0:
        raise ConfigurationError(f"{source}: [hbr].k_factor_min must be > 0")
    if parameters.k_factor_max < parameters.k_factor_min:
        raise ConfigurationError(f"{source}: [hbr].k_factor_max must be >= k_factor_min")
    if parameters.scale_factor <= 0.0:
        raise ConfigurationError(f"{source}: [hbr].scale_factor must be > 0")
    if parameters.max_rating_change <= 0.0:
        raise ConfigurationError(f"{source}: [hbr].max_rating_change must be > 0")
    if parameters.uncertainty_decay_rate <= 0.0 or parameters.uncertainty_decay_rate > 1.0:
        raise ConfigurationError(
            f"{source}: [hbr].uncertainty_decay_rate must be in (0, 1]"
        )
    if parameters.placement_uncertainty_reduction < 0.0:
        raise ConfigurationError(
            f"{source}: [hbr].placement_uncertainty_reduction must be >= 0"
        )
    if parameters.established_uncertainty_reduction < 0.0:
        raise ConfigurationError(
            f"{source}: [hbr].established_uncertainty_reduction must be >= 0"
        )
    if parameters.surprise_uncertainty_weight < 0.0:
        raise ConfigurationError(f"{source}: [hbr].surprise_uncertainty_weight must be >= 0")
    if parameters.volatility_uncertainty_weight < 0.0:
        raise ConfigurationError(
            f"{source}: [hbr].volatility_uncertainty_weight must be >= 0"
        )
    if parameters.seasonal_decay_rate < 0.0 or parameters.seasonal_decay_rate > 1.0:
        raise ConfigurationError(f"{source}: [hbr].seasonal_decay_rate must be between 0 and 1")
    if parameters.seasonal_uncertainty_growth < 1.0:
        raise ConfigurationError(f"{source}: [hbr].seasonal_uncertainty_growth must be >= 1")
    if parameters.inactivity_grace_days < 0.0:
        raise ConfigurationError(f"{source}: [hbr].inactivity_grace_days must be >= 0")
    if parameters.inactivity_uncertainty_per_day < 0.0:
        raise ConfigurationError(
            f"{source}: [hbr].inactivity_uncertainty_per_day must be >= 0"
        )
    if parameters.recent_performance_weight < 0.0 or parameters.recent_performance_weight > 1.0:
        raise ConfigurationError(
            f"{source}: [hbr].recent_performance_weight must be between 0 and 1"
        )
    if parameters.performance_history_size <= 0:
        raise ConfigurationError(f"{source}: [hbr].performance_history_size must be > 0")


__all__ = [
    "HbrParameters",
    "HbrSystemConfig",
    "load_hbr_system_config",
    "load_hbr_system_configs",
    "validate_parameters",
]
