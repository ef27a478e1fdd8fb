# Copyright (c) Syntropy Systems
"""Pytest fixtures for simarchive tests."""

from __future__ import annotations

import json
import os
import sqlite3
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

import pytest

# Store original cwd at module load time
_original_cwd = Path.cwd()

SAMPLE_STATS: dict[str, object] = {
    "name": "All Requests",
    "numberOfRequests": {"total": 120, "ok": 115, "ko": 5},
    "minResponseTime": {"total": 12, "ok": 12, "ko": 30},
    "maxResponseTime": {"total": 980, "ok": 980, "ko": 400},
    "meanResponseTime": {"total": 140, "ok": 138, "ko": 190},
    "standardDeviation": {"total": 80, "ok": 79, "ko": 60},
    "percentiles1": {"total": 110, "ok": 108, "ko": 170},
    "percentiles2": {"total": 160, "ok": 158, "ko": 210},
    "percentiles3": {"total": 420, "ok": 415, "ko": 380},
    "percentiles4": {"total": 870, "ok": 860, "ko": 398},
    "group1": {"name": "t < 800 ms", "htmlName": "t < 800 ms", "count": 112, "percentage": 93},
    "group2": {"name": "800 ms <= t < 1200 ms", "count": 3, "percentage": 3},
    "group3": {"name": "t >= 1200 ms", "count": 0, "percentage": 0},
    "group4": {"name": "failed", "count": 5, "percentage": 4},
    "meanNumberOfRequestsPerSecond": {"total": 4.0, "ok": 3.83, "ko": 0.17},
}

ReportFactory = Callable[..., Path]


def set_mtime_ms(path: Path, modified_ms: int) -> None:
    """Set a path's access and modification time in epoch milliseconds."""
    ns = modified_ms * 1_000_000
    os.utime(path, ns=(ns, ns))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workspace(temp_dir: Path) -> Path:
    """Create an empty build workspace."""
    path = temp_dir / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def sample_stats() -> dict[str, object]:
    """Return a valid global_stats.json payload."""
    return json.loads(json.dumps(SAMPLE_STATS))


@pytest.fixture
def make_report() -> ReportFactory:
    """Return a factory that writes a Gatling report directory."""

    def _make(
        parent: Path,
        name: str,
        *,
        modified_ms: int,
        stats: Optional[object] = None,
        raw_stats: Optional[str] = None,
        subdir: str = "js",
    ) -> Path:
        report_dir = parent / name
        stats_dir = report_dir / subdir
        stats_dir.mkdir(parents=True)

        content = raw_stats if raw_stats is not None else json.dumps(
            stats if stats is not None else SAMPLE_STATS
        )
        _ = (stats_dir / "global_stats.json").write_text(content)
        _ = (report_dir / "index.html").write_text(f"<html>{name}</html>")

        set_mtime_ms(report_dir, modified_ms)
        return report_dir

    return _make


@pytest.fixture
def simarchive_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary simarchive project directory."""
    from simarchive.db import init_db

    project_dir = temp_dir / ".simarchive"
    project_dir.mkdir()
    runs_dir = project_dir / "runs"
    runs_dir.mkdir()
    _ = (project_dir / "config.yaml").write_text("enabled: true\nmtime_tolerance_ms: 0\n")

    # Initialize database
    db_path = project_dir / "archive.db"
    init_db(db_path)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def db_connection(temp_dir: Path) -> Generator[sqlite3.Connection, None, None]:
    """Get a connection to a freshly initialized database."""
    from simarchive.db import get_connection, init_db

    db_path = temp_dir / "archive.db"
    init_db(db_path)
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside an empty temporary directory."""
    os.chdir(temp_dir)
    yield temp_dir
    os.chdir(_original_cwd)
