# Copyright (c) Syntropy Systems
"""simarchive doctor command."""

import sqlite3
from typing import cast

from rich.console import Console

from simarchive.config import find_simarchive_dir, get_db_path, get_runs_dir, load_config
from simarchive.db import SCHEMA_VERSION, get_connection, get_runs, get_schema_version
from simarchive.pipeline import SIMULATIONS_DIR
from simarchive.writer import STAGING_PREFIX

console = Console()


def doctor() -> None:  # noqa: PLR0912
    """Check simarchive setup and diagnose issues.

    Verifies:
    - simarchive directory exists
    - tracking flag is configured
    - SQLite database is healthy and migrated
    - runs directory exists and has no leftover staging copies
    """
    issues: list[str] = []
    warnings: list[str] = []

    # Check project directory
    project_dir = find_simarchive_dir()
    if project_dir is None:
        console.print("[red]\u2717[/red] No .simarchive directory found")
        console.print("  Run [bold]simarchive init[/bold] to initialize a project")
        return

    console.print(f"[green]\u2713[/green] simarchive directory: {project_dir}")

    # Check tracking flag
    config = load_config(project_dir)
    if config.enabled is None:
        console.print("[yellow]\u26a0[/yellow] Tracking status unknown: 'enabled' not set")
        warnings.append("Tracking flag not configured")
    elif config.enabled:
        console.print("[green]\u2713[/green] Simulation tracking enabled")
    else:
        console.print("[dim]\u2022[/dim] Simulation tracking disabled")

    # Check database
    db_path = get_db_path(project_dir)
    if not db_path.exists():
        console.print(f"[red]\u2717[/red] Database not found: {db_path}")
        issues.append("Database missing")
    else:
        conn = None
        try:
            conn = get_connection(db_path)

            # Check WAL mode
            result = cast(
                "sqlite3.Row | None",
                conn.execute("PRAGMA journal_mode").fetchone(),
            )
            if result is not None and cast("str", result[0]).lower() == "wal":
                console.print("[green]\u2713[/green] SQLite: WAL mode enabled")
            else:
                console.print("[yellow]\u26a0[/yellow] SQLite: expected WAL journal mode")
                warnings.append("Not using WAL mode")

            version = get_schema_version(conn)
            if version == SCHEMA_VERSION:
                console.print(f"[green]\u2713[/green] Schema version {version}")
            else:
                console.print(
                    f"[yellow]\u26a0[/yellow] Schema version {version}, "
                    f"expected {SCHEMA_VERSION}"
                )
                warnings.append("Database schema out of date")

            if version > 0:
                run_count = len(get_runs(conn, limit=1_000_000))
                console.print(f"[green]\u2713[/green] Database: {run_count} runs")

        except sqlite3.Error as e:
            console.print(f"[red]\u2717[/red] Database error: {e}")
            issues.append(f"Database error: {e}")
        finally:
            if conn is not None:
                conn.close()

    # Check runs directory
    runs_dir = get_runs_dir(project_dir)
    if runs_dir.exists():
        run_dirs = [p for p in runs_dir.iterdir() if p.is_dir()]
        console.print(f"[green]\u2713[/green] Runs directory: {len(run_dirs)} runs")

        staging = [
            entry
            for run_dir in run_dirs
            if (run_dir / SIMULATIONS_DIR).is_dir()
            for entry in (run_dir / SIMULATIONS_DIR).iterdir()
            if entry.name.startswith(STAGING_PREFIX)
        ]
        if staging:
            console.print(
                f"[yellow]\u26a0[/yellow] {len(staging)} staging copies from "
                "interrupted archiving"
            )
            warnings.append("Leftover staging directories")
    else:
        console.print("[yellow]\u26a0[/yellow] Runs directory not found")
        warnings.append("Runs directory missing")

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
    elif warnings:
        console.print(f"[yellow]Found {len(warnings)} warning(s)[/yellow]")
        for warning in warnings:
            console.print(f"  - {warning}")
    else:
        console.print("[green]All checks passed[/green]")
