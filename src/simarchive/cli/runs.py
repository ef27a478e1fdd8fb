# Copyright (c) Syntropy Systems
"""simarchive runs and show commands."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.table import Table

from simarchive.config import get_db_path, require_simarchive_dir
from simarchive.db import get_connection, get_run_state, get_runs

if TYPE_CHECKING:
    from simarchive.models.stats import Statistics

console = Console()


def format_ms(stat: Optional[Statistics]) -> str:
    """Format the total of a timing statistic in milliseconds."""
    if stat is None or stat.total is None:
        return "-"
    return f"{stat.total:.0f} ms"


def runs(
    last: int = typer.Option(
        20,
        "--last", "-n",
        help="Number of runs to show",
    ),
) -> None:
    """List runs with archived simulations."""
    try:
        project_dir = require_simarchive_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    db_path = get_db_path(project_dir)
    conn = get_connection(db_path)

    try:
        run_list = get_runs(conn, limit=last)
    finally:
        conn.close()

    if not run_list:
        console.print("[dim]No runs found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Run")
    table.add_column("Created", style="dim")
    table.add_column("Simulations", justify="right")

    for run in run_list:
        table.add_row(run.id, run.created_at or "-", str(run.simulation_count))

    console.print(table)


def show(
    run_id: str = typer.Argument(
        ...,
        help="Run ID to show archived simulations for",
    ),
) -> None:
    """Show the simulations archived for a run.

    Displays request counts and response time percentiles.
    """
    try:
        project_dir = require_simarchive_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    db_path = get_db_path(project_dir)
    conn = get_connection(db_path)

    try:
        state = get_run_state(conn, run_id)
    finally:
        conn.close()

    if state is None:
        console.print(f"[red]Error:[/red] Run '{run_id}' not found")
        raise typer.Exit(1)

    console.print(f"\n[bold]Run {state.run_id}[/bold]")
    console.print(f"  [dim]created:[/dim] {state.created_at or '-'}")
    console.print(f"  [dim]simulations:[/dim] {len(state.simulations)}\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Simulation")
    table.add_column("Requests", justify="right")
    table.add_column("OK", justify="right", style="green")
    table.add_column("KO", justify="right", style="red")
    table.add_column("p50", justify="right")
    table.add_column("p95", justify="right")
    table.add_column("p99", justify="right")
    table.add_column("Archive", style="dim")

    for sim in state.simulations:
        stats = sim.stats
        table.add_row(
            sim.simulation_id,
            str(stats.total_requests),
            str(stats.ok_requests),
            str(stats.ko_requests),
            format_ms(stats.p50),
            format_ms(stats.p95),
            format_ms(stats.p99),
            sim.archive_dir,
        )

    console.print(table)
