# Copyright (c) Syntropy Systems
"""Tests for report discovery and selection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from simarchive.fs import LocalFilesystem
from simarchive.selector import find_report_dirs, select_reports

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import ReportFactory

RUN_START_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z


class _FailingStatFilesystem(LocalFilesystem):
    """Local filesystem whose mtime lookup fails for one directory name."""

    def __init__(self, failing_name: str) -> None:
        self.failing_name = failing_name

    def mtime_ms(self, path: Path) -> int:
        if path.name == self.failing_name:
            raise PermissionError("stat denied")
        return super().mtime_ms(path)


class _UnreadableWorkspaceFilesystem(LocalFilesystem):
    def glob(self, root: Path, pattern: str) -> list[Path]:
        raise PermissionError("listing denied")


class TestFindReportDirs:
    """Tests for locating report directories."""

    def test_empty_workspace(self, workspace: Path) -> None:
        """Test that a workspace without stats files has no reports."""
        assert find_report_dirs(workspace, LocalFilesystem()) == []

    def test_grandparent_of_stats_file(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that the report dir is two levels above global_stats.json."""
        results = workspace / "target" / "gatling"
        results.mkdir(parents=True)
        report = make_report(results, "load-test-20240101120000", modified_ms=RUN_START_MS)

        assert find_report_dirs(workspace, LocalFilesystem()) == [report]

    def test_report_at_workspace_root(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that a report directly under the workspace is found."""
        report = make_report(workspace, "smoke-1", modified_ms=RUN_START_MS)

        assert find_report_dirs(workspace, LocalFilesystem()) == [report]

    def test_deduplicates_reports(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that a report with two stats files is listed once."""
        report = make_report(workspace, "smoke-1", modified_ms=RUN_START_MS)
        extra = report / "data"
        extra.mkdir()
        _ = (extra / "global_stats.json").write_text("{}")

        assert find_report_dirs(workspace, LocalFilesystem()) == [report]

    def test_excluded_directories_skipped(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that reports under an excluded directory are not discovered."""
        report = make_report(workspace, "smoke-1", modified_ms=RUN_START_MS)
        archive = workspace / ".simarchive" / "runs" / "build-1" / "simulations"
        archive.mkdir(parents=True)
        _ = make_report(archive, "smoke-1", modified_ms=RUN_START_MS)

        found = find_report_dirs(
            workspace, LocalFilesystem(), exclude=[workspace / ".simarchive"]
        )

        assert found == [report]


class TestSelectReports:
    """Tests for run-start based selection."""

    def test_no_reports_returns_empty(self, workspace: Path) -> None:
        """Test that no reports is the normal empty case, not an error."""
        assert select_reports(workspace, RUN_START_MS) == []

    def test_selects_newer_reports_only(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that reports from previous runs are ignored."""
        _ = make_report(workspace, "old-sim-1", modified_ms=RUN_START_MS - 60_000)
        new = make_report(workspace, "new-sim-2", modified_ms=RUN_START_MS + 60_000)

        candidates = select_reports(workspace, RUN_START_MS)

        assert [c.path for c in candidates] == [new.resolve()]
        assert candidates[0].name == "new-sim-2"
        assert candidates[0].modified_ms == RUN_START_MS + 60_000

    def test_equal_timestamp_excluded(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that a report modified exactly at run start is not selected."""
        _ = make_report(workspace, "edge-1", modified_ms=RUN_START_MS)
        _ = make_report(workspace, "edge-2", modified_ms=RUN_START_MS + 1)

        candidates = select_reports(workspace, RUN_START_MS)

        assert [c.name for c in candidates] == ["edge-2"]

    def test_tolerance_accepts_slightly_older(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that a configured tolerance absorbs clock skew."""
        _ = make_report(workspace, "skewed-1", modified_ms=RUN_START_MS - 500)
        _ = make_report(workspace, "stale-1", modified_ms=RUN_START_MS - 5_000)

        candidates = select_reports(workspace, RUN_START_MS, tolerance_ms=1_000)

        assert [c.name for c in candidates] == ["skewed-1"]

    def test_sorted_discovery_order(
        self, workspace: Path, make_report: ReportFactory
    ) -> None:
        """Test that candidates come back in a stable order."""
        for name in ["b-sim-2", "a-sim-1", "c-sim-3"]:
            _ = make_report(workspace, name, modified_ms=RUN_START_MS + 1_000)

        candidates = select_reports(workspace, RUN_START_MS)

        assert [c.name for c in candidates] == ["a-sim-1", "b-sim-2", "c-sim-3"]

    def test_stat_failure_skips_candidate(
        self,
        workspace: Path,
        make_report: ReportFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that one unreadable report does not hide the others."""
        _ = make_report(workspace, "broken-1", modified_ms=RUN_START_MS + 1_000)
        _ = make_report(workspace, "fine-1", modified_ms=RUN_START_MS + 1_000)

        with caplog.at_level(logging.INFO, logger="simarchive"):
            candidates = select_reports(
                workspace,
                RUN_START_MS,
                fs=_FailingStatFilesystem("broken-1"),
            )

        assert [c.name for c in candidates] == ["fine-1"]
        assert "Could not stat report" in caplog.text

    def test_logs_selected_reports(
        self,
        workspace: Path,
        make_report: ReportFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that each selected report is logged by name."""
        _ = make_report(workspace, "logged-1", modified_ms=RUN_START_MS + 1_000)

        with caplog.at_level(logging.INFO, logger="simarchive"):
            _ = select_reports(workspace, RUN_START_MS)

        assert "Adding report 'logged-1'" in caplog.text

    def test_scan_failure_returns_empty(
        self, workspace: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a workspace that cannot be listed yields no candidates."""
        with caplog.at_level(logging.INFO, logger="simarchive"):
            candidates = select_reports(
                workspace, RUN_START_MS, fs=_UnreadableWorkspaceFilesystem()
            )

        assert candidates == []
        assert "Could not scan workspace" in caplog.text
