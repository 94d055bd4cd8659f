"""Services for snapshot loading, index generations and cached queries."""

from report_engine.services.cache_manager import ReportCacheManager
from report_engine.services.filters import ReportFilter
from report_engine.services.generation import IndexGeneration, prepare_snapshot
from report_engine.services.http_store import HttpReportStore
from report_engine.services.record_store import InMemoryReportStore, RecordStore, SqlReportStore

__all__ = [
    "HttpReportStore",
    "InMemoryReportStore",
    "IndexGeneration",
    "RecordStore",
    "ReportCacheManager",
    "ReportFilter",
    "SqlReportStore",
    "prepare_snapshot",
]
