"""Pydantic schemas for cache query results and status."""

from datetime import datetime
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel

from report_engine.schemas.report import Report


class CacheState(str, Enum):
    """Freshness of the cached index generation."""

    COLD = "cold"
    FRESH = "fresh"
    STALE = "stale"


class SpanningEdge(NamedTuple):
    """Edge of the geographic minimum spanning tree."""

    from_id: str
    to_id: str
    weight_km: float


class RelatedReports(BaseModel):
    """Reports reachable from a root report, with their geographic skeleton."""

    root_id: str
    reports: list[Report]
    spanning_tree: list[SpanningEdge] = []

    @property
    def ids(self) -> set[str]:
        return {report.id for report in self.reports}

    @property
    def total_distance_km(self) -> float:
        return sum(edge.weight_km for edge in self.spanning_tree)


class CacheStatus(BaseModel):
    """Health view of the report cache."""

    state: CacheState
    generation: int | None = None
    loaded_at: datetime | None = None
    expires_at: datetime | None = None
    report_count: int = 0
    unresolved_count: int = 0
    refresh_in_progress: bool = False
    last_error: str | None = None
    last_error_at: datetime | None = None
