"""
simarchive - Durable archiving of Gatling simulation reports.

Find the reports a run produced, copy them out of the workspace, keep their stats.
"""

from simarchive.pipeline import ArchiveOutcome, ArchiveResult, ArchivingPipeline, archive_run

__version__ = "0.1.0"
__all__ = [
    "ArchiveOutcome",
    "ArchiveResult",
    "ArchivingPipeline",
    "__version__",
    "archive_run",
]
