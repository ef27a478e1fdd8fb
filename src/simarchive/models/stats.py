# Copyright (c) Syntropy Systems
"""Pydantic models for Gatling summary statistics (global_stats.json)."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import Field, field_validator

from .base import FrozenModel

# Gatling writes "-" where a value does not exist (e.g. ko timings with no failures)
MISSING_VALUE = "-"


def _missing_to_none(value: object) -> object:
    if isinstance(value, str) and value.strip() == MISSING_VALUE:
        return None
    return value


class Statistics(FrozenModel):
    """A total/ok/ko triple as written by Gatling."""

    total: Optional[float] = None
    ok: Optional[float] = None
    ko: Optional[float] = None

    @field_validator("total", "ok", "ko", mode="before")
    @classmethod
    def _parse_missing(cls, value: object) -> object:
        return _missing_to_none(value)


class ResponseTimeGroup(FrozenModel):
    """Response time bucket (e.g. "t < 800 ms")."""

    name: str
    count: int = 0
    percentage: float = 0.0


class SummaryStatistics(FrozenModel):
    """Aggregate statistics for one simulation report."""

    name: Optional[str] = None
    number_of_requests: Statistics = Field(alias="numberOfRequests")
    min_response_time: Optional[Statistics] = Field(default=None, alias="minResponseTime")
    max_response_time: Optional[Statistics] = Field(default=None, alias="maxResponseTime")
    mean_response_time: Optional[Statistics] = Field(default=None, alias="meanResponseTime")
    standard_deviation: Optional[Statistics] = Field(default=None, alias="standardDeviation")
    p50: Statistics = Field(alias="percentiles1")
    p75: Optional[Statistics] = Field(default=None, alias="percentiles2")
    p95: Optional[Statistics] = Field(default=None, alias="percentiles3")
    p99: Optional[Statistics] = Field(default=None, alias="percentiles4")
    group1: Optional[ResponseTimeGroup] = None
    group2: Optional[ResponseTimeGroup] = None
    group3: Optional[ResponseTimeGroup] = None
    group4: Optional[ResponseTimeGroup] = None
    mean_requests_per_second: Optional[Statistics] = Field(
        default=None,
        alias="meanNumberOfRequestsPerSecond",
    )

    @property
    def total_requests(self) -> int:
        """Total number of requests sent."""
        return _as_count(self.number_of_requests.total)

    @property
    def ok_requests(self) -> int:
        """Number of successful requests."""
        return _as_count(self.number_of_requests.ok)

    @property
    def ko_requests(self) -> int:
        """Number of failed requests."""
        return _as_count(self.number_of_requests.ko)

    @property
    def groups(self) -> list[ResponseTimeGroup]:
        """Response time buckets present in the report, in order."""
        return [
            g for g in (self.group1, self.group2, self.group3, self.group4)
            if g is not None
        ]


def _as_count(value: Union[float, None]) -> int:
    return int(value) if value is not None else 0
