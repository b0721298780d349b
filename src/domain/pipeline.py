"""Replay pipeline: match files in, engine state and snapshots out."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from domain.ratings.common import MatchPerformance, MatchResult, RatingStatistics
from domain.ratings.hbr.config import HbrSystemConfig
from domain.ratings.hbr.engine import HiddenBattleRatingEngine
from domain.ratings.hbr.record import to_naive_utc
from repositories.hbr_repository import (
    ensure_hbr_schema,
    fetch_player_ratings,
    get_hbr_system,
    replace_player_ratings,
    upsert_hbr_system,
)

logger = logging.getLogger("hbr.pipeline")


@dataclass(frozen=True)
class ReplaySummary:
    """Outcome for one replayed match file."""

    system_name: str
    processed_matches: int
    rejected_matches: int
    applied_updates: int
    failed_updates: int
    seasonal_decay_players: int
    potential_smurfs: tuple[int, ...]
    statistics: RatingStatistics


def _parse_performance(player_id: int, raw: dict[str, Any]) -> MatchPerformance:
    return MatchPerformance(
        player_id=player_id,
        kills=int(raw.get("kills", 0)),
        deaths=int(raw.get("deaths", 0)),
        assists=int(raw.get("assists", 0)),
        damage_dealt=float(raw.get("damage_dealt", 0.0)),
        accuracy=float(raw.get("accuracy", 0.0)),
        objective_score=int(raw.get("objective_score", 0)),
        mvp=bool(raw.get("mvp", False)),
    )


def parse_match_result(raw: dict[str, Any], *, source: str = "match") -> MatchResult:
    """Build a MatchResult from one decoded JSON object."""
    match_id = str(raw.get("match_id", "")).strip()
    if not match_id:
        raise ValueError(f"{source}: match_id is required")

    try:
        winners = tuple(int(player_id) for player_id in raw.get("winners", ()))
        losers = tuple(int(player_id) for player_id in raw.get("losers", ()))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{source}: winners/losers must be lists of player ids") from exc

    performances = {
        int(player_id): _parse_performance(int(player_id), stats)
        for player_id, stats in (raw.get("performances") or {}).items()
    }

    event_time_value = raw.get("event_time")
    event_time = (
        None
        if event_time_value is None
        else to_naive_utc(datetime.fromisoformat(str(event_time_value)))
    )

    duration_value = raw.get("duration_seconds")
    return MatchResult(
        match_id=match_id,
        winners=winners,
        losers=losers,
        performances=performances,
        event_time=event_time,
        duration_seconds=None if duration_value is None else float(duration_value),
        was_forfeited=bool(raw.get("was_forfeited", False)),
    )


def load_match_results(path: Path) -> list[MatchResult]:
    """Read a JSON-lines file with one match per line; blank lines are skipped."""
    results: list[MatchResult] = []
    with path.open("r", encoding="utf-8") as file:
        for line_number, line in enumerate(file, start=1):
            if not line.strip():
                continue
            source = f"{path}:{line_number}"
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{source}: invalid JSON: {exc.msg}") from exc
            results.append(parse_match_result(raw, source=source))
    return results


def replay_matches(
    engine: HiddenBattleRatingEngine,
    results: Iterable[MatchResult],
    *,
    system_config: HbrSystemConfig,
    apply_seasonal_decay: bool = False,
    echo: Callable[[str], None] | None = None,
) -> ReplaySummary:
    """Apply matches in order and summarize the resulting population."""
    processed = 0
    rejected = 0
    applied = 0
    failed = 0

    for processed, result in enumerate(results, start=1):
        try:
            events = engine.apply_match_result(result)
        except ValueError as exc:
            logger.warning("skipping match_id=%s: %s", result.match_id, exc)
            rejected += 1
            failed += len(result.roster)
            continue
        applied += len(events)
        failed += len(result.roster) - len(events)

        if echo is not None and processed % 10_000 == 0:
            echo(f"system={system_config.name} processed_matches={processed}")

    decayed = engine.apply_seasonal_decay() if apply_seasonal_decay else 0
    smurfs = tuple(
        sorted(player_id for player_id in engine.ratings() if engine.is_potential_smurf(player_id))
    )
    statistics = engine.rating_statistics()

    if echo is not None:
        echo(
            "completed "
            f"system={system_config.name} "
            f"processed_matches={processed} "
            f"rejected_matches={rejected} "
            f"applied_updates={applied} "
            f"failed_updates={failed} "
            f"tracked_players={statistics.player_count}"
        )

    return ReplaySummary(
        system_name=system_config.name,
        processed_matches=processed,
        rejected_matches=rejected,
        applied_updates=applied,
        failed_updates=failed,
        seasonal_decay_players=decayed,
        potential_smurfs=smurfs,
        statistics=statistics,
    )


@dataclass(frozen=True)
class SnapshotSummary:
    system_name: str
    system_id: int
    saved_players: int


def save_snapshot(
    *,
    session_factory,
    db_engine,
    engine: HiddenBattleRatingEngine,
    system_config: HbrSystemConfig,
) -> SnapshotSummary:
    """Replace the stored snapshot for ``system_config`` with the engine's ratings."""
    ensure_hbr_schema(db_engine)
    with session_factory() as session:
        try:
            system = upsert_hbr_system(
                session,
                name=system_config.name,
                description=system_config.description,
                config_json=system_config.as_config_json(),
            )
            saved = replace_player_ratings(
                session,
                engine.ratings().values(),
                hbr_system_id=system.id,
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

    return SnapshotSummary(system_name=system_config.name, system_id=system.id, saved_players=saved)


def restore_snapshot(
    *,
    session_factory,
    db_engine,
    engine: HiddenBattleRatingEngine,
    system_name: str,
) -> int:
    """Load a stored snapshot into the engine; 0 when the system has none."""
    ensure_hbr_schema(db_engine)
    with session_factory() as session:
        system = get_hbr_system(session, system_name)
        if system is None:
            return 0
        records = fetch_player_ratings(session, hbr_system_id=system.id)
    return engine.load_ratings(records)


__all__ = [
    "ReplaySummary",
    "SnapshotSummary",
    "load_match_results",
    "parse_match_result",
    "replay_matches",
    "restore_snapshot",
    "save_snapshot",
]
