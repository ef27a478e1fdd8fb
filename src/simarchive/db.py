"""SQLite store for per-run archive state, with WAL mode and atomic appends."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from simarchive.models.state import ArchivedSimulation, RunArchiveState, RunRecord

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

# Schema migrations, applied in order. The database's PRAGMA user_version
# records how many have been applied.
MIGRATIONS: list[str] = [
    """
    -- Runs that have archived at least one simulation
    CREATE TABLE IF NOT EXISTS runs (
        id TEXT PRIMARY KEY,
        created_at TEXT NOT NULL
    );

    -- Archived simulations, seq gives append order across invocations
    CREATE TABLE IF NOT EXISTS simulations (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id TEXT NOT NULL REFERENCES runs(id),
        simulation_id TEXT NOT NULL,
        archive_dir TEXT NOT NULL,
        stats TEXT NOT NULL,  -- JSON, global_stats.json contents
        archived_at TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_simulations_run_id ON simulations(run_id, seq);
    """,
]

SCHEMA_VERSION = len(MIGRATIONS)


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a database connection with proper settings for concurrent access.

    - isolation_level=None for explicit transaction control
    - WAL mode for concurrent readers/writers
    - busy_timeout to wait for locks instead of failing immediately
    - Row factory for dict-like access
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.row_factory = sqlite3.Row
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the number of migrations applied to this database."""
    row = conn.execute("PRAGMA user_version").fetchone()
    return int(row[0]) if row else 0


def migrate(conn: sqlite3.Connection) -> int:
    """Apply pending migrations and return the resulting schema version."""
    version = get_schema_version(conn)
    if version > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {version} is newer than supported ({SCHEMA_VERSION})"
        )

    for index in range(version, SCHEMA_VERSION):
        conn.executescript(MIGRATIONS[index])
        conn.execute(f"PRAGMA user_version = {index + 1}")

    return SCHEMA_VERSION


def init_db(db_path: Path) -> None:
    """Initialize the database with the current schema."""
    conn = get_connection(db_path)
    try:
        migrate(conn)
    finally:
        conn.close()


def utcnow() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# --- Run state operations ---

def merge_simulations(
    conn: sqlite3.Connection,
    run_id: str,
    simulations: Sequence[ArchivedSimulation],
) -> Optional[RunArchiveState]:
    """
    Append newly archived simulations to a run's state.

    Creates the run record on the first non-empty batch. Existing entries are
    never replaced or removed, and no deduplication happens here: the archive
    writer only reports each archive directory once.

    Returns the run's full state, or None if the run has no state yet.
    """
    if not simulations:
        return get_run_state(conn, run_id)

    try:
        conn.execute("BEGIN IMMEDIATE")
        conn.execute(
            "INSERT OR IGNORE INTO runs (id, created_at) VALUES (?, ?)",
            (run_id, utcnow()),
        )
        conn.executemany(
            """
            INSERT INTO simulations (run_id, simulation_id, archive_dir, stats, archived_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    run_id,
                    sim.simulation_id,
                    sim.archive_dir,
                    sim.stats.model_dump_json(by_alias=True),
                    sim.archived_at,
                )
                for sim in simulations
            ],
        )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise

    return get_run_state(conn, run_id)


def get_run_state(conn: sqlite3.Connection, run_id: str) -> Optional[RunArchiveState]:
    """Get a run's archived simulations in append order."""
    run_row = conn.execute(
        "SELECT id, created_at FROM runs WHERE id = ?",
        (run_id,),
    ).fetchone()

    if run_row is None:
        return None

    rows = conn.execute(
        """
        SELECT simulation_id, archive_dir, stats, archived_at
        FROM simulations
        WHERE run_id = ?
        ORDER BY seq
        """,
        (run_id,),
    ).fetchall()

    return RunArchiveState(
        run_id=run_row["id"],
        created_at=run_row["created_at"],
        simulations=[ArchivedSimulation.model_validate(dict(row)) for row in rows],
    )


def get_runs(conn: sqlite3.Connection, limit: int = 20) -> list[RunRecord]:
    """Get runs with archived simulations, newest first."""
    rows = conn.execute(
        """
        SELECT r.id, r.created_at, COUNT(s.seq) AS simulation_count
        FROM runs r
        LEFT JOIN simulations s ON s.run_id = r.id
        GROUP BY r.id
        ORDER BY r.created_at DESC, r.id
        LIMIT ?
        """,
        (limit,),
    ).fetchall()

    return [RunRecord.model_validate(dict(row)) for row in rows]
