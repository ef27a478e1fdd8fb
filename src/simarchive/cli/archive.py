# Copyright (c) Syntropy Systems
"""simarchive archive command."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from simarchive.config import get_db_path, get_runs_dir, load_config, require_simarchive_dir
from simarchive.db import get_connection, get_run_state, migrate
from simarchive.pipeline import ArchiveOutcome, archive_run

console = Console()


def parse_started_at(value: str) -> int:
    """Parse a run start time into epoch milliseconds.

    Accepts epoch milliseconds or an ISO-8601 timestamp. Timestamps without
    an offset are read as local time, like file modification times.
    """
    text = value.strip()
    if text.isdigit():
        return int(text)

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        started = datetime.fromisoformat(text)
    except ValueError as e:
        msg = f"Invalid start time '{value}': use ISO-8601 or epoch milliseconds"
        raise typer.BadParameter(msg) from e

    return int(started.timestamp() * 1000)


def _validate_run_id(run_id: str) -> str:
    if not run_id or run_id in {".", ".."} or "/" in run_id or "\\" in run_id:
        msg = f"Invalid run ID '{run_id}'"
        raise typer.BadParameter(msg)
    return run_id


def archive(
    run_id: str = typer.Argument(
        ...,
        envvar="SIMARCHIVE_RUN_ID",
        help="Identifier of the run the reports belong to",
    ),
    started_at: str = typer.Option(
        ...,
        "--started-at", "-s",
        envvar="SIMARCHIVE_RUN_STARTED_AT",
        help="Run start time (ISO-8601 or epoch milliseconds)",
    ),
    workspace: Path = typer.Option(
        Path(),
        "--workspace", "-w",
        envvar="SIMARCHIVE_WORKSPACE",
        help="Workspace to scan for reports (default: current directory)",
    ),
    enabled: Optional[bool] = typer.Option(
        None,
        "--enabled/--disabled",
        help="Override the tracking flag from config.yaml",
    ),
    tolerance_ms: Optional[int] = typer.Option(
        None,
        "--tolerance-ms",
        min=0,
        help="Accept reports modified up to this many ms before the run start",
    ),
) -> None:
    """Archive the Gatling reports produced by a run.

    Reports already archived for the run are skipped, so the command can be
    repeated safely:

        simarchive archive build-42 --started-at 2024-01-01T12:00:00 -w ./target
    """
    try:
        project_dir = require_simarchive_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    run_id = _validate_run_id(run_id)
    started_ms = parse_started_at(started_at)

    config = load_config(project_dir)
    if enabled is None:
        enabled = config.enabled
    if tolerance_ms is None:
        tolerance_ms = config.mtime_tolerance_ms

    run_root = get_runs_dir(project_dir) / run_id
    db_path = get_db_path(project_dir)
    conn = get_connection(db_path)

    try:
        _ = migrate(conn)
        result = archive_run(
            conn,
            run_id,
            workspace.resolve(),
            started_ms,
            run_root,
            enabled=enabled,
            tolerance_ms=tolerance_ms,
            exclude=[project_dir],
        )
        state = get_run_state(conn, run_id)
    finally:
        conn.close()

    if result.outcome == ArchiveOutcome.STATUS_UNKNOWN:
        console.print(
            "[yellow]Tracking status unknown:[/yellow] set 'enabled' in config.yaml "
            "or pass --enabled"
        )
        return

    if result.outcome == ArchiveOutcome.DISABLED:
        console.print("[yellow]Simulation tracking disabled[/yellow], nothing archived")
        return

    if result.outcome == ArchiveOutcome.WORKSPACE_UNAVAILABLE:
        console.print(f"[red]Error:[/red] Workspace not accessible: {workspace}")
        raise typer.Exit(1)

    if result.outcome == ArchiveOutcome.ROOT_FAILED:
        console.print(
            f"[red]Error:[/red] Could not create archive directory under {run_root}"
        )
        raise typer.Exit(1)

    if result.outcome == ArchiveOutcome.NOTHING_NEW:
        console.print("[dim]No newer Gatling reports to archive[/dim]")
        return

    total = len(state.simulations) if state else len(result.simulations)
    console.print(
        f"[green]Archived {len(result.simulations)} simulation(s)[/green] "
        f"for run {run_id} ({total} total)"
    )
    for sim in result.simulations:
        console.print(f"  [dim]{sim.simulation_id}:[/dim] {sim.archive_dir}")
