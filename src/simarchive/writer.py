# Copyright (c) Syntropy Systems
"""Copying selected reports into a run's permanent archive."""
from __future__ import annotations

import logging
import re
import time
import uuid
from typing import TYPE_CHECKING, Optional

from simarchive.errors import ArchiveCopyError, ArchiveRootError
from simarchive.fs import LocalFilesystem, ReportFilesystem

if TYPE_CHECKING:
    from pathlib import Path

    from simarchive.selector import ReportCandidate

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"

# Staging dirs older than this are leftovers from interrupted invocations
STALE_STAGING_MS = 24 * 60 * 60 * 1000

# Report name characters kept in a staging dir name, which must stay under NAME_MAX
STAGING_NAME_CHARS = 64

# .staging-<created-ms>-<token>-<name>
_STAGING_RE = re.compile(rf"^{re.escape(STAGING_PREFIX)}(\d+)-[0-9a-f]+-")


def simulation_id_for(report_name: str) -> str:
    """Strip the trailing ``-<timestamp>`` suffix from a report directory name."""
    head, sep, _ = report_name.rpartition("-")
    return head if sep else report_name


class ArchiveWriter:
    """Write-once archive of report directories under a single root.

    The target directory's existence marks a report as archived. Copies are
    made into a private staging directory and published with one rename,
    so an interrupted or failed copy never leaves a directory under the
    final name.
    """

    archive_root: Path
    _fs: ReportFilesystem

    def __init__(self, archive_root: Path, fs: Optional[ReportFilesystem] = None) -> None:
        self.archive_root = archive_root
        self._fs = fs or LocalFilesystem()

    def ensure_root(self) -> None:
        """Create the archive root if needed.

        Raises:
            ArchiveRootError: If the directory cannot be created

        """
        try:
            self._fs.make_dirs(self.archive_root)
        except OSError as e:
            raise ArchiveRootError(self.archive_root, str(e)) from e

        self._sweep_stale_staging()

    def _sweep_stale_staging(self) -> None:
        now_ms = int(time.time() * 1000)
        try:
            entries = self._fs.list_dir(self.archive_root)
        except OSError as e:
            logger.warning("Could not list archive root '%s': %s", self.archive_root, e)
            return

        for entry in entries:
            if not entry.name.startswith(STAGING_PREFIX):
                continue
            try:
                if now_ms - self._staging_created_ms(entry) < STALE_STAGING_MS:
                    continue
                self._fs.remove_tree(entry)
                logger.info("Removed stale staging directory '%s'", entry)
            except OSError as e:
                logger.warning("Could not remove staging directory '%s': %s", entry, e)

    def _staging_created_ms(self, entry: Path) -> int:
        # The copy overwrites the dir mtime with the report's, so the name is authoritative
        match = _STAGING_RE.match(entry.name)
        if match is not None:
            return int(match.group(1))
        return self._fs.mtime_ms(entry)

    def staging_for(self, candidate: ReportCandidate) -> Path:
        """Return a fresh private staging directory path for a candidate."""
        created_ms = int(time.time() * 1000)
        token = uuid.uuid4().hex[:8]
        name = candidate.name[:STAGING_NAME_CHARS]
        return self.archive_root / f"{STAGING_PREFIX}{created_ms}-{token}-{name}"

    def target_for(self, candidate: ReportCandidate) -> Path:
        """Return the final archive directory for a candidate."""
        return self.archive_root / candidate.name

    def archive(self, candidate: ReportCandidate) -> Optional[Path]:
        """Copy a report into the archive.

        Returns:
            The archive directory, or None if the candidate was skipped

        Raises:
            ArchiveCopyError: If the copy or publish failed (nothing is left behind)

        """
        target = self.target_for(candidate)
        try:
            exists = self._fs.exists(target)
        except OSError as e:
            logger.warning(
                "Could not check simulation archive directory '%s', skipping: %s",
                target,
                e,
            )
            return None
        if exists:
            logger.info("Simulation archive directory '%s' already exists, skipping.", target)
            return None

        staging = self.staging_for(candidate)
        try:
            self._fs.make_dir_exclusive(staging)
        except OSError as e:
            logger.warning(
                "Could not create simulation archive directory '%s', skipping: %s",
                staging,
                e,
            )
            return None

        try:
            self._fs.copy_tree(candidate.path, staging)
        except OSError as e:
            self._discard(staging)
            raise ArchiveCopyError(candidate.path, str(e)) from e

        try:
            self._fs.rename(staging, target)
        except FileExistsError:
            self._discard(staging)
            logger.info(
                "Simulation archive directory '%s' was created concurrently, skipping.",
                target,
            )
            return None
        except OSError as e:
            self._discard(staging)
            try:
                published = self._fs.exists(target)
            except OSError:
                published = False
            if published:
                logger.info(
                    "Simulation archive directory '%s' was created concurrently, skipping.",
                    target,
                )
                return None
            raise ArchiveCopyError(candidate.path, str(e)) from e

        logger.info("Archived report '%s' to '%s'", candidate.name, target)
        return target

    def _discard(self, staging: Path) -> None:
        try:
            self._fs.remove_tree(staging)
        except OSError as e:
            logger.warning("Could not remove staging directory '%s': %s", staging, e)
