"""Pydantic schemas for reports and cache results."""

from report_engine.schemas.cache import CacheState, CacheStatus, RelatedReports, SpanningEdge
from report_engine.schemas.report import Location, Report, ReportStatus

__all__ = [
    "CacheState",
    "CacheStatus",
    "Location",
    "RelatedReports",
    "Report",
    "ReportStatus",
    "SpanningEdge",
]
