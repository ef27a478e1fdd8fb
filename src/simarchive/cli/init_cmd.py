# Copyright (c) Syntropy Systems
"""simarchive init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console

from simarchive.config import CONFIG_FILE_NAME, DB_FILE_NAME, PROJECT_DIR_NAME, RUNS_DIR_NAME
from simarchive.db import init_db

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
    enabled: bool = typer.Option(  # noqa: FBT001
        True,
        "--enabled/--disabled",
        help="Whether simulation tracking starts enabled",
    ),
) -> None:
    """Initialize a new simarchive project.

    Creates a .simarchive directory with configuration and database.
    """
    target = path.resolve()
    project_dir = target / PROJECT_DIR_NAME

    if project_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {project_dir}")
        return

    # Create directory structure
    project_dir.mkdir(parents=True)
    runs_dir = project_dir / RUNS_DIR_NAME
    runs_dir.mkdir()

    # Create default config
    config = {
        "enabled": enabled,
        "mtime_tolerance_ms": 0,
    }

    config_path = project_dir / CONFIG_FILE_NAME
    with config_path.open("w") as f:
        yaml.dump(config, f, default_flow_style=False)

    # Initialize database
    db_path = project_dir / DB_FILE_NAME
    init_db(db_path)

    console.print(f"[green]Initialized simarchive project:[/green] {project_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    console.print(f"  [dim]database:[/dim] {db_path}")
    console.print(f"  [dim]runs:[/dim] {runs_dir}")
