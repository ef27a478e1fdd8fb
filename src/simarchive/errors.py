# Copyright (c) Syntropy Systems
"""Exceptions raised by the archiving core."""

from __future__ import annotations

from pathlib import Path


class SimarchiveError(Exception):
    """Base class for simarchive errors."""


class ArchiveRootError(SimarchiveError):
    """The archive root could not be created. Fatal for an invocation."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Could not create simulations archive directory '{path}': {reason}"
        )


class ArchiveCopyError(SimarchiveError):
    """Copying a report into the archive failed."""

    def __init__(self, source: Path, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not copy report '{source}': {reason}")


class StatsParseError(SimarchiveError):
    """A report's summary statistics file is missing or malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse stats file '{path}': {reason}")
