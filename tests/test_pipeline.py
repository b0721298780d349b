"""Tests for match-file parsing, replay and snapshot persistence."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from db import create_db_engine, create_session_factory
from domain.pipeline import (
    load_match_results,
    parse_match_result,
    replay_matches,
    restore_snapshot,
    save_snapshot,
)
from domain.ratings.hbr.config import HbrParameters, HbrSystemConfig
from domain.ratings.hbr.engine import HiddenBattleRatingEngine


def _system_config(name: str = "hbr_test") -> HbrSystemConfig:
    return HbrSystemConfig(
        name=name,
        description="test system",
        file_path=Path("hbr_test.toml"),
        parameters=HbrParameters(),
    )


def _engine() -> HiddenBattleRatingEngine:
    engine = HiddenBattleRatingEngine()
    engine.initialize()
    return engine


def _raw_match(match_id: str, winners: list[int], losers: list[int]) -> dict[str, object]:
    return {
        "match_id": match_id,
        "winners": winners,
        "losers": losers,
        "event_time": "2026-03-01T18:00:00",
    }


def test_parse_match_result() -> None:
    result = parse_match_result(
        {
            "match_id": "m-100",
            "winners": [1, "2"],
            "losers": [3, 4],
            "event_time": "2026-03-01T18:00:00",
            "duration_seconds": 1800,
            "performances": {
                "1": {"kills": 12, "deaths": 4, "damage_dealt": 1800.5, "accuracy": 31.0, "mvp": True}
            },
        }
    )

    assert result.match_id == "m-100"
    assert result.winners == (1, 2)
    assert result.losers == (3, 4)
    assert result.roster == (1, 2, 3, 4)
    assert result.event_time == datetime(2026, 3, 1, 18, 0, 0)
    assert result.duration_seconds == pytest.approx(1800.0)
    assert result.was_forfeited is False

    performance = result.performances[1]
    assert performance.player_id == 1
    assert performance.kills == 12
    assert performance.damage_dealt == pytest.approx(1800.5)
    assert performance.mvp is True


def test_parse_match_result_requires_match_id() -> None:
    with pytest.raises(ValueError, match="match_id is required"):
        parse_match_result({"winners": [1], "losers": [2]})


def test_parse_match_result_rejects_bad_player_ids() -> None:
    with pytest.raises(ValueError, match="winners/losers"):
        parse_match_result({"match_id": "m1", "winners": ["abc"], "losers": [2]})


def test_load_match_results_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "matches.jsonl"
    path.write_text(
        json.dumps(_raw_match("m1", [1], [2]))
        + "\n\n"
        + json.dumps(_raw_match("m2", [2], [1]))
        + "\n"
    )

    results = load_match_results(path)

    assert [result.match_id for result in results] == ["m1", "m2"]


def test_load_match_results_reports_line_of_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "matches.jsonl"
    path.write_text(json.dumps(_raw_match("m1", [1], [2])) + "\n{not json\n")

    with pytest.raises(ValueError, match=r"matches\.jsonl:2"):
        load_match_results(path)


def test_replay_matches_summarizes_population() -> None:
    engine = _engine()
    results = [
        parse_match_result(_raw_match("m1", [1, 2], [3, 4])),
        parse_match_result(_raw_match("m2", [3, 4], [1, 2])),
        parse_match_result(_raw_match("m3", [1, 3], [2, 4])),
    ]
    messages: list[str] = []

    summary = replay_matches(
        engine,
        results,
        system_config=_system_config(),
        apply_seasonal_decay=True,
        echo=messages.append,
    )

    assert summary.system_name == "hbr_test"
    assert summary.processed_matches == 3
    assert summary.applied_updates == 12
    assert summary.failed_updates == 0
    assert summary.seasonal_decay_players == 4
    assert summary.potential_smurfs == ()
    assert summary.statistics.player_count == 4
    assert "processed_matches=3" in messages[-1]


def test_save_and_restore_snapshot() -> None:
    db_engine = create_db_engine("sqlite://")
    session_factory = create_session_factory(db_engine)
    system_config = _system_config()

    engine = _engine()
    replay_matches(
        engine,
        [
            parse_match_result(_raw_match("m1", [1, 2], [3, 4])),
            parse_match_result(_raw_match("m2", [1, 3], [2, 5])),
        ],
        system_config=system_config,
    )

    snapshot = save_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=engine,
        system_config=system_config,
    )
    assert snapshot.saved_players == 5
    assert snapshot.system_name == "hbr_test"

    restored_engine = _engine()
    restored = restore_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=restored_engine,
        system_name="hbr_test",
    )

    assert restored == 5
    assert restored_engine.created_count == 0
    assert restored_engine.ratings() == engine.ratings()


def test_save_snapshot_replaces_previous_rows() -> None:
    db_engine = create_db_engine("sqlite://")
    session_factory = create_session_factory(db_engine)
    system_config = _system_config()

    engine = _engine()
    engine.apply_match_result(parse_match_result(_raw_match("m1", [1], [2])))
    first = save_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=engine,
        system_config=system_config,
    )

    engine.apply_match_result(parse_match_result(_raw_match("m2", [3], [1])))
    second = save_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=engine,
        system_config=system_config,
    )

    assert first.system_id == second.system_id
    assert second.saved_players == 3

    restored_engine = _engine()
    restore_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=restored_engine,
        system_name="hbr_test",
    )
    assert restored_engine.ratings()[1].games_played == 2


def test_restore_unknown_system_loads_nothing() -> None:
    db_engine = create_db_engine("sqlite://")
    engine = _engine()

    restored = restore_snapshot(
        session_factory=create_session_factory(db_engine),
        db_engine=db_engine,
        engine=engine,
        system_name="missing",
    )

    assert restored == 0
    assert engine.tracked_player_count() == 0


def test_parse_match_result_converts_offset_timestamps_to_naive_utc() -> None:
    shifted = parse_match_result(
        {"match_id": "m1", "winners": [1], "losers": [2], "event_time": "2026-03-01T20:00:00+02:00"}
    )
    zulu = parse_match_result(
        {"match_id": "m2", "winners": [1], "losers": [2], "event_time": "2026-03-01T18:00:00Z"}
    )

    assert shifted.event_time == datetime(2026, 3, 1, 18, 0, 0)
    assert shifted.event_time.tzinfo is None
    assert zulu.event_time == datetime(2026, 3, 1, 18, 0, 0)


def test_replay_applies_matches_with_offset_timestamps() -> None:
    engine = _engine()
    result = parse_match_result(
        {"match_id": "m1", "winners": [1], "losers": [2], "event_time": "2026-03-01T18:00:00+00:00"}
    )

    summary = replay_matches(engine, [result], system_config=_system_config())

    assert summary.applied_updates == 2
    assert summary.failed_updates == 0
    assert engine.ratings()[1].last_updated == datetime(2026, 3, 1, 18, 0, 0)


def test_replay_skips_rejected_matches_and_continues() -> None:
    engine = _engine()
    results = [
        parse_match_result(_raw_match("m1", [1, 2], [2, 3])),
        parse_match_result(_raw_match("m2", [1], [3])),
    ]

    summary = replay_matches(engine, results, system_config=_system_config())

    assert summary.processed_matches == 2
    assert summary.rejected_matches == 1
    assert summary.failed_updates == 4
    assert summary.applied_updates == 2
    assert engine.ratings()[1].games_played == 1
