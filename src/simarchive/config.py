# Copyright (c) Syntropy Systems
"""Configuration management for simarchive."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, cast

import yaml

PROJECT_DIR_NAME = ".simarchive"
CONFIG_FILE_NAME = "config.yaml"
DB_FILE_NAME = "archive.db"
RUNS_DIR_NAME = "runs"


@dataclass
class SimarchiveConfig:
    """Configuration for simarchive."""

    # Archive reports? None means the configuration does not say.
    enabled: Optional[bool] = None

    # Accept reports modified up to this long before the run start (ms)
    mtime_tolerance_ms: int = 0

    # Parent directory of run storage roots (defaults to .simarchive/runs)
    runs_dir: Optional[Path] = None


def find_simarchive_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .simarchive directory by walking up from start_path.

    Returns None if no .simarchive directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        project_dir = current / PROJECT_DIR_NAME
        if project_dir.is_dir():
            return project_dir
        current = current.parent

    # Check root
    project_dir = current / PROJECT_DIR_NAME
    if project_dir.is_dir():
        return project_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global simarchive config directory (~/.simarchive)."""
    return Path.home() / PROJECT_DIR_NAME


def load_config(project_dir: Path | None = None) -> SimarchiveConfig:
    """Load configuration from .simarchive/config.yaml or defaults.

    Looks for config in:
    1. Provided project_dir
    2. Nearest .simarchive directory walking up
    3. ~/.simarchive/config.yaml
    4. Defaults
    """
    config = SimarchiveConfig()

    # Find config file
    config_path = None

    if project_dir is not None:
        config_path = project_dir / CONFIG_FILE_NAME
    else:
        found_dir = find_simarchive_dir()
        if found_dir is not None:
            config_path = found_dir / CONFIG_FILE_NAME
        else:
            global_config = get_global_config_dir() / CONFIG_FILE_NAME
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            loaded = cast("object", yaml.safe_load(f))

        # A scalar or list document carries no settings
        data = cast("dict[str, object]", loaded) if isinstance(loaded, dict) else {}

        enabled = data.get("enabled")
        if isinstance(enabled, bool):
            config.enabled = enabled
        tolerance = data.get("mtime_tolerance_ms")
        if isinstance(tolerance, (int, float)) and not isinstance(tolerance, bool):
            config.mtime_tolerance_ms = max(0, int(tolerance))
        runs_dir = data.get("runs_dir")
        if isinstance(runs_dir, str) and runs_dir:
            path = Path(runs_dir).expanduser()
            if not path.is_absolute():
                path = config_path.parent / path
            config.runs_dir = path

    return config


def require_simarchive_dir() -> Path:
    """Get the project directory or raise an error if not found."""
    project_dir = find_simarchive_dir()
    if project_dir is None:
        msg = "No .simarchive directory found. Run 'simarchive init' first."
        raise RuntimeError(
            msg
        )
    return project_dir


def get_db_path(project_dir: Path | None = None) -> Path:
    """Get the path to the SQLite database."""
    if project_dir is None:
        project_dir = require_simarchive_dir()

    return project_dir / DB_FILE_NAME


def get_runs_dir(project_dir: Path | None = None) -> Path:
    """Get the parent directory of run storage roots."""
    if project_dir is None:
        project_dir = require_simarchive_dir()

    config = load_config(project_dir)
    if config.runs_dir is not None:
        return config.runs_dir

    return project_dir / RUNS_DIR_NAME
