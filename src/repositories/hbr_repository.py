"""Persistence helpers for hidden battle rating snapshots using SQLAlchemy."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.ratings.hbr.record import PlayerRating
from models import Base, HbrSystem, PlayerHbrRating


def ensure_hbr_schema(engine: Engine) -> None:
    """Create the HBR tables and their indexes if they do not exist."""
    Base.metadata.create_all(
        bind=engine,
        tables=[HbrSystem.__table__, PlayerHbrRating.__table__],
    )


def upsert_hbr_system(
    session: Session,
    *,
    name: str,
    description: str | None,
    config_json: dict[str, Any],
) -> HbrSystem:
    """Create or update the system metadata row."""
    system = session.execute(select(HbrSystem).where(HbrSystem.name == name)).scalar_one_or_none()
    if system is None:
        system = HbrSystem(name=name, description=description, config_json=config_json)
        session.add(system)
    else:
        system.description = description
        system.config_json = config_json
        system.updated_at = datetime.now(UTC).replace(tzinfo=None)
    session.flush()
    return system


def get_hbr_system(session: Session, name: str) -> HbrSystem | None:
    return session.execute(select(HbrSystem).where(HbrSystem.name == name)).scalar_one_or_none()


def _record_to_row(record: PlayerRating, hbr_system_id: int) -> dict[str, Any]:
    return {
        "hbr_system_id": hbr_system_id,
        "player_id": record.player_id,
        "rating": record.rating,
        "uncertainty": record.uncertainty,
        "games_played": record.games_played,
        "in_placement": record.in_placement,
        "peak_rating": record.peak_rating,
        "win_streak": record.win_streak,
        "loss_streak": record.loss_streak,
        "recent_performance": record.recent_performance,
        "last_updated": record.last_updated,
    }


def _row_to_record(row: PlayerHbrRating) -> PlayerRating:
    return PlayerRating(
        player_id=row.player_id,
        rating=row.rating,
        uncertainty=row.uncertainty,
        games_played=row.games_played,
        last_updated=row.last_updated,
        in_placement=row.in_placement,
        peak_rating=row.peak_rating,
        win_streak=row.win_streak,
        loss_streak=row.loss_streak,
        recent_performance=row.recent_performance,
    )


def replace_player_ratings(
    session: Session,
    records: Iterable[PlayerRating],
    *,
    hbr_system_id: int,
) -> int:
    """Hard-reset one system's snapshot rows and bulk insert the given records."""
    session.execute(delete(PlayerHbrRating).where(PlayerHbrRating.hbr_system_id == hbr_system_id))

    payload = [_record_to_row(record, hbr_system_id) for record in records]
    if payload:
        session.execute(insert(PlayerHbrRating), payload)
    return len(payload)


def fetch_player_ratings(session: Session, *, hbr_system_id: int) -> list[PlayerRating]:
    """Fetch one system's snapshot ordered by player id."""
    statement = (
        select(PlayerHbrRating)
        .where(PlayerHbrRating.hbr_system_id == hbr_system_id)
        .order_by(PlayerHbrRating.player_id)
    )
    return [_row_to_record(row) for row in session.execute(statement).scalars()]


def fetch_top_player_ratings(
    session: Session,
    *,
    hbr_system_id: int,
    top_n: int,
    include_placement: bool = False,
) -> list[PlayerRating]:
    """Highest-rated players first; placement players are skipped unless requested."""
    statement = select(PlayerHbrRating).where(PlayerHbrRating.hbr_system_id == hbr_system_id)
    if not include_placement:
        statement = statement.where(PlayerHbrRating.in_placement.is_(False))
    statement = statement.order_by(
        PlayerHbrRating.rating.desc(),
        PlayerHbrRating.player_id,
    ).limit(top_n)
    return [_row_to_record(row) for row in session.execute(statement).scalars()]


def count_tracked_players(session: Session, *, hbr_system_id: int | None = None) -> int:
    """Count distinct players with a stored snapshot."""
    statement = select(func.count(func.distinct(PlayerHbrRating.player_id)))
    if hbr_system_id is not None:
        statement = statement.where(PlayerHbrRating.hbr_system_id == hbr_system_id)
    result = session.scalar(statement)
    return int(result or 0)


__all__ = [
    "count_tracked_players",
    "ensure_hbr_schema",
    "fetch_player_ratings",
    "fetch_top_player_ratings",
    "get_hbr_system",
    "replace_player_ratings",
    "upsert_hbr_system",
]
