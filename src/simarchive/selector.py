# Copyright (c) Syntropy Systems
"""Discovery of simulation reports produced during the current run."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from simarchive.fs import LocalFilesystem, ReportFilesystem

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

STATS_FILE_NAME = "global_stats.json"

# <report-dir>/<subdir>/global_stats.json, anywhere below the workspace
STATS_PATTERN = f"**/*/*/{STATS_FILE_NAME}"


@dataclass(frozen=True)
class ReportCandidate:
    """A directory believed to hold a completed simulation report."""

    path: Path
    name: str
    modified_ms: int


def find_report_dirs(
    workspace: Path,
    fs: ReportFilesystem,
    exclude: Sequence[Path] = (),
) -> list[Path]:
    """Return report directories below workspace, deduplicated, in sorted order.

    Reports inside any of the exclude directories (e.g. an archive kept in
    the workspace) are left out.
    """
    excluded = [p.resolve() for p in exclude]
    seen: set[Path] = set()
    report_dirs: list[Path] = []
    for stats_file in fs.glob(workspace, STATS_PATTERN):
        report_dir = stats_file.parent.parent
        if any(report_dir.resolve().is_relative_to(p) for p in excluded):
            continue
        if report_dir not in seen:
            seen.add(report_dir)
            report_dirs.append(report_dir)
    return report_dirs


def select_reports(
    workspace: Path,
    run_started_at_ms: int,
    *,
    fs: Optional[ReportFilesystem] = None,
    tolerance_ms: int = 0,
    exclude: Sequence[Path] = (),
) -> list[ReportCandidate]:
    """Select the reports modified after the run started.

    A report is kept when its directory mtime is strictly greater than
    ``run_started_at_ms - tolerance_ms``. Modification time is the only
    signal available, so clock skew between the workspace host and this
    host can produce false positives or negatives; do not rely on
    sub-second precision.

    Args:
        workspace: Root of the workspace to scan
        run_started_at_ms: Run start time in milliseconds since the epoch
        fs: Filesystem to use (defaults to the local disk)
        tolerance_ms: Accept reports modified up to this long before the start
        exclude: Directories whose reports are never candidates

    Returns:
        Candidates produced by this run, in discovery order

    """
    fs = fs or LocalFilesystem()
    workspace = workspace.resolve()

    try:
        report_dirs = find_report_dirs(workspace, fs, exclude)
    except OSError as e:
        logger.error("Could not scan workspace '%s' for reports: %s", workspace, e)  # noqa: TRY400
        return []

    if not report_dirs:
        logger.info("Could not find a Gatling report in '%s'.", workspace)
        return []

    threshold = run_started_at_ms - tolerance_ms
    candidates: list[ReportCandidate] = []
    for report_dir in report_dirs:
        try:
            modified_ms = fs.mtime_ms(report_dir)
        except OSError as e:
            logger.warning("Could not stat report '%s', skipping: %s", report_dir, e)
            continue

        if modified_ms > threshold:
            logger.info("Adding report '%s'", report_dir.name)
            candidates.append(
                ReportCandidate(path=report_dir, name=report_dir.name, modified_ms=modified_ms)
            )
        else:
            logger.debug(
                "Ignoring report '%s' from a previous run (modified %d <= %d)",
                report_dir.name,
                modified_ms,
                threshold,
            )

    return candidates
