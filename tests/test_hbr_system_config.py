"""Tests for TOML-based HBR system config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from domain.ratings.hbr.config import (
    HbrParameters,
    load_hbr_system_config,
    load_hbr_system_configs,
    validate_parameters,
)
from domain.ratings.hbr.engine import HiddenBattleRatingEngine
from domain.ratings.hbr.errors import ConfigurationError

ROOT_DIR = Path(__file__).resolve().parents[1]


def test_load_hbr_system_configs_from_directory(tmp_path: Path) -> None:
    config_path = tmp_path / "default.toml"
    config_path.write_text(
        """
[system]
name = "system_a"
description = "A test system"

[hbr]
initial_rating = 1200.0
initial_uncertainty = 300.0
min_uncertainty = 40.0
placement_match_count = 5
max_rating_change = 120.0
enable_seasonal_decay = false
seasonal_decay_rate = 0.8
""".strip()
    )

    configs = load_hbr_system_configs(tmp_path)
    assert len(configs) == 1

    system = configs[0]
    assert system.name == "system_a"
    assert system.description == "A test system"
    assert system.file_path == config_path
    assert system.parameters.initial_rating == pytest.approx(1200.0)
    assert system.parameters.initial_uncertainty == pytest.approx(300.0)
    assert system.parameters.min_uncertainty == pytest.approx(40.0)
    assert system.parameters.placement_match_count == 5
    assert system.parameters.max_rating_change == pytest.approx(120.0)
    assert system.parameters.enable_seasonal_decay is False
    assert system.parameters.seasonal_decay_rate == pytest.approx(0.8)
    assert system.parameters.k_factor_max == pytest.approx(HbrParameters().k_factor_max)


def test_as_config_json_contains_every_parameter(tmp_path: Path) -> None:
    config_path = tmp_path / "default.toml"
    config_path.write_text('[system]\nname = "system_a"\n')

    system = load_hbr_system_config(config_path)
    payload = system.as_config_json()

    assert payload["initial_rating"] == pytest.approx(1500.0)
    assert payload["placement_match_count"] == 10
    assert payload["enable_seasonal_decay"] is True


def test_shipped_default_config_is_valid() -> None:
    configs = load_hbr_system_configs(ROOT_DIR / "configs" / "ratings" / "hbr")
    assert [config.name for config in configs] == ["hbr_default"]
    assert configs[0].parameters == HbrParameters()


def test_missing_system_name_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text("[hbr]\ninitial_rating = 1500.0\n")

    with pytest.raises(ConfigurationError, match="name is required"):
        load_hbr_system_configs(tmp_path)


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text('[system]\nname = "a"\n\n[hbr]\nk_factor = 32.0\n')

    with pytest.raises(ConfigurationError, match="unknown"):
        load_hbr_system_configs(tmp_path)


def test_non_numeric_values_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text(
        '[system]\nname = "a"\n\n[hbr]\ninitial_rating = "high"\n'
    )

    with pytest.raises(ConfigurationError, match="invalid"):
        load_hbr_system_configs(tmp_path)


def test_min_uncertainty_above_initial_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text(
        '[system]\nname = "a"\n\n[hbr]\nmin_uncertainty = 400.0\ninitial_uncertainty = 350.0\n'
    )

    with pytest.raises(ConfigurationError, match="min_uncertainty"):
        load_hbr_system_configs(tmp_path)


def test_duplicate_system_names_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "a.toml").write_text('[system]\nname = "same"\n')
    (tmp_path / "b.toml").write_text('[system]\nname = "same"\n')

    with pytest.raises(ValueError, match="Duplicate hbr system names"):
        load_hbr_system_configs(tmp_path)


def test_missing_config_directory_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_hbr_system_configs(tmp_path / "missing")


@pytest.mark.parametrize(
    "overrides",
    [
        {"initial_uncertainty": 0.0},
        {"k_factor_min": 0.0},
        {"k_factor_max": 8.0, "k_factor_min": 16.0},
        {"max_rating_change": -1.0},
        {"seasonal_decay_rate": 1.5},
        {"seasonal_uncertainty_growth": 0.9},
        {"placement_match_count": -1},
        {"performance_history_size": 0},
        {"initial_rating": float("nan")},
    ],
)
def test_validate_parameters_rejects_invalid_thresholds(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        validate_parameters(HbrParameters(**overrides))


def test_engine_refuses_invalid_parameters() -> None:
    with pytest.raises(ConfigurationError):
        HiddenBattleRatingEngine(HbrParameters(min_uncertainty=500.0))


@pytest.mark.parametrize(
    "line",
    [
        "placement_match_count = 10.7",
        'enable_seasonal_decay = "yes"',
        "enable_seasonal_decay = 1",
        "initial_rating = true",
        'performance_history_size = "10"',
    ],
)
def test_mistyped_values_are_rejected(tmp_path: Path, line: str) -> None:
    (tmp_path / "bad.toml").write_text(f'[system]\nname = "a"\n\n[hbr]\n{line}\n')

    with pytest.raises(ConfigurationError, match="invalid"):
        load_hbr_system_configs(tmp_path)


def test_integer_values_are_accepted_for_float_parameters(tmp_path: Path) -> None:
    (tmp_path / "a.toml").write_text('[system]\nname = "a"\n\n[hbr]\ninitial_rating = 1400\n')

    system = load_hbr_system_config(tmp_path / "a.toml")

    assert isinstance(system.parameters.initial_rating, float)
    assert system.parameters.initial_rating == pytest.approx(1400.0)
