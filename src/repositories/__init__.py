"""Database repository helpers."""

from repositories.hbr_repository import (
    count_tracked_players,
    ensure_hbr_schema,
    fetch_player_ratings,
    fetch_top_player_ratings,
    get_hbr_system,
    replace_player_ratings,
    upsert_hbr_system,
)

__all__ = [
    "count_tracked_players",
    "ensure_hbr_schema",
    "fetch_player_ratings",
    "fetch_top_player_ratings",
    "get_hbr_system",
    "replace_player_ratings",
    "upsert_hbr_system",
]
