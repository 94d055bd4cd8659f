"""Report indexing and prioritization engine."""

from report_engine.errors import EmptyStructure, ReportEngineError, RootNotFound, SourceUnavailable
from report_engine.schemas import CacheState, Location, RelatedReports, Report, ReportStatus
from report_engine.services import ReportCacheManager

__all__ = [
    "CacheState",
    "EmptyStructure",
    "Location",
    "RelatedReports",
    "Report",
    "ReportCacheManager",
    "ReportEngineError",
    "ReportStatus",
    "RootNotFound",
    "SourceUnavailable",
]

__version__ = "0.1.0"
