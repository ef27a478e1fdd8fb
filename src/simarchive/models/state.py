# Copyright (c) Syntropy Systems
"""Pydantic models for archived simulations and per-run state."""

from __future__ import annotations

from typing import Optional, cast

from pydantic import Field, field_validator

from .base import FrozenModel, SimarchiveBaseModel
from .stats import SummaryStatistics


class ArchivedSimulation(FrozenModel):
    """One report copied into a run's archive."""

    simulation_id: str
    stats: SummaryStatistics
    archive_dir: str
    archived_at: Optional[str] = None

    @field_validator("stats", mode="before")
    @classmethod
    def _parse_stats(cls, value: object) -> object:
        if isinstance(value, str):
            return SummaryStatistics.model_validate_json(value)
        return cast("object", value)


class RunArchiveState(SimarchiveBaseModel):
    """All simulations archived for one run, in append order."""

    run_id: str
    created_at: Optional[str] = None
    simulations: list[ArchivedSimulation] = Field(default_factory=list)

    @property
    def simulation_ids(self) -> list[str]:
        """Simulation identifiers in append order."""
        return [s.simulation_id for s in self.simulations]


class RunRecord(SimarchiveBaseModel):
    """Database run record with its simulation count."""

    id: str
    created_at: Optional[str] = None
    simulation_count: int = 0
