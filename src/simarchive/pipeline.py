# Copyright (c) Syntropy Systems
"""End-to-end archiving of a run's simulation reports."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from simarchive.db import merge_simulations, utcnow
from simarchive.errors import ArchiveCopyError, ArchiveRootError, StatsParseError
from simarchive.fs import LocalFilesystem, ReportFilesystem
from simarchive.models.state import ArchivedSimulation
from simarchive.selector import select_reports
from simarchive.stats import parse_stats
from simarchive.writer import ArchiveWriter, simulation_id_for

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

# Archive location inside a run's storage root
SIMULATIONS_DIR = "simulations"


class ArchiveOutcome(str, Enum):
    """Why an invocation produced (or did not produce) simulations."""

    ARCHIVED = "archived"
    NOTHING_NEW = "nothing_new"
    DISABLED = "disabled"
    STATUS_UNKNOWN = "status_unknown"
    WORKSPACE_UNAVAILABLE = "workspace_unavailable"
    ROOT_FAILED = "root_failed"


@dataclass
class ArchiveResult:
    """Simulations archived by one invocation."""

    outcome: ArchiveOutcome
    simulations: list[ArchivedSimulation] = field(default_factory=list)


class ArchivingPipeline:
    """Selects, archives and parses the reports of one run.

    An invocation may be repeated for the same run: reports already present
    in the archive are skipped, so only new simulations are returned.
    """

    _fs: ReportFilesystem
    tolerance_ms: int

    def __init__(
        self,
        fs: Optional[ReportFilesystem] = None,
        tolerance_ms: int = 0,
    ) -> None:
        self._fs = fs or LocalFilesystem()
        self.tolerance_ms = tolerance_ms

    def run(
        self,
        workspace: Path,
        run_started_at_ms: int,
        run_root: Path,
        *,
        enabled: Optional[bool],
        exclude: Sequence[Path] = (),
    ) -> ArchiveResult:
        """Archive the reports produced since the run started.

        Args:
            workspace: Workspace to scan for reports
            run_started_at_ms: Run start time in milliseconds since the epoch
            run_root: Run storage root; reports go to ``run_root/simulations``
            enabled: Tracking flag, None when the configuration does not say
            exclude: Extra directories never scanned for reports; the run
                root itself is always excluded

        Returns:
            The outcome and the simulations archived by this invocation

        """
        if enabled is None:
            logger.warning(
                "Cannot check simulation tracking status, reports won't be archived."
            )
            logger.warning(
                "Please make sure simulation tracking is enabled in your configuration!"
            )
            return ArchiveResult(ArchiveOutcome.STATUS_UNKNOWN)

        if not enabled:
            logger.info("Simulation tracking disabled, reports were not archived.")
            return ArchiveResult(ArchiveOutcome.DISABLED)

        if not self._fs.is_dir(workspace):
            logger.error("Failed to access workspace '%s'.", workspace)
            return ArchiveResult(ArchiveOutcome.WORKSPACE_UNAVAILABLE)

        logger.info("Archiving Gatling reports...")

        candidates = select_reports(
            workspace,
            run_started_at_ms,
            fs=self._fs,
            tolerance_ms=self.tolerance_ms,
            exclude=[run_root, *exclude],
        )
        if not candidates:
            logger.info("No newer Gatling reports to archive.")
            return ArchiveResult(ArchiveOutcome.NOTHING_NEW)

        writer = ArchiveWriter(run_root / SIMULATIONS_DIR, fs=self._fs)
        try:
            writer.ensure_root()
        except ArchiveRootError as e:
            logger.error("%s", e)  # noqa: TRY400
            return ArchiveResult(ArchiveOutcome.ROOT_FAILED)

        simulations: list[ArchivedSimulation] = []
        for candidate in candidates:
            try:
                archive_dir = writer.archive(candidate)
            except ArchiveCopyError as e:
                logger.error("%s, skipping.", e)  # noqa: TRY400
                continue
            except OSError as e:
                logger.error(  # noqa: TRY400
                    "Could not archive report '%s', skipping: %s", candidate.name, e
                )
                continue

            if archive_dir is None:
                continue

            simulation_id = simulation_id_for(candidate.name)
            try:
                parsed = parse_stats(archive_dir, simulation_id)
            except (StatsParseError, OSError) as e:
                logger.error(  # noqa: TRY400
                    "Report '%s' was archived but its statistics are unusable, skipping: %s",
                    candidate.name,
                    e,
                )
                continue

            simulations.append(
                ArchivedSimulation(
                    simulation_id=parsed.simulation_id,
                    stats=parsed.stats,
                    archive_dir=str(archive_dir),
                    archived_at=utcnow(),
                )
            )

        if not simulations:
            logger.info("No newer Gatling reports to archive.")
            return ArchiveResult(ArchiveOutcome.NOTHING_NEW)

        return ArchiveResult(ArchiveOutcome.ARCHIVED, simulations)


def archive_run(  # noqa: PLR0913
    conn: sqlite3.Connection,
    run_id: str,
    workspace: Path,
    run_started_at_ms: int,
    run_root: Path,
    *,
    enabled: Optional[bool],
    tolerance_ms: int = 0,
    exclude: Sequence[Path] = (),
    fs: Optional[ReportFilesystem] = None,
) -> ArchiveResult:
    """Run the pipeline and append its simulations to the run's state."""
    pipeline = ArchivingPipeline(fs=fs, tolerance_ms=tolerance_ms)
    result = pipeline.run(
        workspace, run_started_at_ms, run_root, enabled=enabled, exclude=exclude
    )

    if result.simulations:
        state = merge_simulations(conn, run_id, result.simulations)
        total = len(state.simulations) if state else len(result.simulations)
        logger.info(
            "Recorded %d new simulation(s) for run '%s' (%d total)",
            len(result.simulations),
            run_id,
            total,
        )

    return result
