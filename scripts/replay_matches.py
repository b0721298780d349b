#!/usr/bin/env python3
"""Replay a JSON-lines match file through the hidden battle rating engine."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.pipeline import load_match_results, replay_matches, restore_snapshot, save_snapshot
from domain.ratings.hbr import HbrError, HiddenBattleRatingEngine, load_hbr_system_config
from log_setup import setup_logging

DEFAULT_CONFIG = ROOT_DIR / "configs" / "ratings" / "hbr" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Replay completed matches into hidden battle ratings.",
)


@app.command()
def replay(
    matches_file: Annotated[
        Path,
        typer.Argument(help="JSON-lines file with one completed match per line."),
    ],
    config_file: Annotated[
        Path,
        typer.Option("--config-file", help="HBR system TOML config."),
    ] = DEFAULT_CONFIG,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL for rating snapshots."),
    ] = DEFAULT_DB_URL,
    resume: Annotated[
        bool,
        typer.Option("--resume", help="Start from the stored snapshot for this system."),
    ] = False,
    seasonal_decay: Annotated[
        bool,
        typer.Option("--seasonal-decay", help="Apply one seasonal decay pass after the replay."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute ratings without writing a snapshot."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every rating update."),
    ] = False,
) -> None:
    """Apply matches in file order and report population statistics."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    if not matches_file.is_file():
        raise typer.BadParameter(f"Match file not found: {matches_file}", param_hint="MATCHES_FILE")

    try:
        system_config = load_hbr_system_config(config_file)
        engine = HiddenBattleRatingEngine(system_config.parameters)
    except (HbrError, OSError) as exc:
        typer.echo(f"failed to load config {config_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    engine.initialize()

    db_engine = None
    session_factory = None
    if resume or not dry_run:
        db_engine = create_db_engine(db_url)
        session_factory = create_session_factory(db_engine)

    if resume:
        restored = restore_snapshot(
            session_factory=session_factory,
            db_engine=db_engine,
            engine=engine,
            system_name=system_config.name,
        )
        typer.echo(f"restored players={restored} system={system_config.name}")

    try:
        results = load_match_results(matches_file)
    except ValueError as exc:
        typer.echo(f"failed to read matches from {matches_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    summary = replay_matches(
        engine,
        results,
        system_config=system_config,
        apply_seasonal_decay=seasonal_decay,
        echo=typer.echo,
    )

    stats = summary.statistics
    typer.echo(
        f"players={stats.player_count} mean={stats.average_rating:.1f} "
        f"std={stats.standard_deviation:.1f} min={stats.min_rating:.1f} max={stats.max_rating:.1f}"
    )
    if summary.rejected_matches:
        typer.echo(f"rejected matches={summary.rejected_matches}")
    if summary.seasonal_decay_players:
        typer.echo(f"seasonal decay applied players={summary.seasonal_decay_players}")
    if summary.potential_smurfs:
        typer.echo(f"potential smurfs: {', '.join(str(pid) for pid in summary.potential_smurfs)}")

    if dry_run:
        typer.echo("[dry-run] snapshot not written")
        if summary.failed_updates:
            raise typer.Exit(code=1)
        return

    snapshot = save_snapshot(
        session_factory=session_factory,
        db_engine=db_engine,
        engine=engine,
        system_config=system_config,
    )
    typer.echo(
        f"saved players={snapshot.saved_players} system={snapshot.system_name} "
        f"system_id={snapshot.system_id}"
    )

    if summary.failed_updates:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
