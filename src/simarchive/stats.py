# Copyright (c) Syntropy Systems
"""Reading summary statistics from an archived report."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from simarchive.errors import StatsParseError
from simarchive.models.stats import SummaryStatistics
from simarchive.selector import STATS_FILE_NAME

if TYPE_CHECKING:
    from pathlib import Path

# Where Gatling writes the stats file inside a report
DEFAULT_STATS_SUBDIR = "js"


@dataclass(frozen=True)
class ParsedReport:
    """Summary statistics together with the simulation they belong to."""

    simulation_id: str
    stats: SummaryStatistics


def find_stats_file(report_dir: Path) -> Path:
    """Locate the summary statistics file inside a report directory.

    Prefers ``js/global_stats.json`` and falls back to the first
    ``*/global_stats.json`` in sorted order.
    """
    preferred = report_dir / DEFAULT_STATS_SUBDIR / STATS_FILE_NAME
    try:
        if preferred.is_file():
            return preferred
        matches = sorted(p for p in report_dir.glob(f"*/{STATS_FILE_NAME}") if p.is_file())
    except OSError as e:
        raise StatsParseError(preferred, str(e)) from e

    if matches:
        return matches[0]

    raise StatsParseError(preferred, "stats file not found")


def parse_stats(report_dir: Path, simulation_id: str) -> ParsedReport:
    """Parse a report's summary statistics.

    Raises:
        StatsParseError: If the file is missing, unreadable, or not valid stats JSON

    """
    stats_path = find_stats_file(report_dir)

    try:
        raw = stats_path.read_bytes()
    except OSError as e:
        raise StatsParseError(stats_path, str(e)) from e

    try:
        stats = SummaryStatistics.model_validate_json(raw)
    except ValidationError as e:
        raise StatsParseError(stats_path, f"{e.error_count()} validation error(s)") from e

    return ParsedReport(simulation_id=simulation_id, stats=stats)
