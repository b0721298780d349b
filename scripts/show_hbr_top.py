#!/usr/bin/env python3
"""Show top players for a stored hidden battle rating snapshot."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from repositories.hbr_repository import (
    count_tracked_players,
    ensure_hbr_schema,
    fetch_top_player_ratings,
    get_hbr_system,
)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Query top players from player_hbr_ratings by system.",
)


@app.command()
def show_hbr_top(
    system_name: Annotated[
        str,
        typer.Option("--system-name", help="HBR system name from hbr_systems.name."),
    ] = "hbr_default",
    top_n: Annotated[
        int,
        typer.Option("--top-n", help="Number of players to return."),
    ] = 20,
    include_placement: Annotated[
        bool,
        typer.Option(
            "--include-placement",
            help="Also list players who have not finished their placement matches.",
        ),
    ] = False,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL for rating snapshots."),
    ] = DEFAULT_DB_URL,
) -> None:
    """Print the highest-rated players with tier and confidence band."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")

    engine = create_db_engine(db_url)
    ensure_hbr_schema(engine)
    session_factory = create_session_factory(engine)

    with session_factory() as session:
        system = get_hbr_system(session, system_name)
        if system is None:
            typer.echo(f"No HBR system named '{system_name}'.")
            raise typer.Exit(code=1)

        records = fetch_top_player_ratings(
            session,
            hbr_system_id=system.id,
            top_n=top_n,
            include_placement=include_placement,
        )
        tracked = count_tracked_players(session, hbr_system_id=system.id)
        initial_uncertainty = float(system.config_json.get("initial_uncertainty", 350.0))

    if not records:
        typer.echo(f"No rated players found for system '{system_name}'.")
        return

    typer.echo(f"system={system_name} top_n={top_n} tracked_players={tracked}")
    for index, record in enumerate(records, start=1):
        typer.echo(
            f"{index:2d}. player={record.player_id:<10d} "
            f"rating={record.rating:8.2f} ±{record.uncertainty:6.1f} "
            f"tier={record.tier().value:<11} "
            f"confidence={record.confidence(initial_uncertainty):4.2f} "
            f"games={record.games_played:4d} peak={record.peak_rating:8.2f}"
        )


if __name__ == "__main__":
    app()
