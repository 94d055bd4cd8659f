"""Database models."""

from report_engine.models.report import AddressRecord, CategoryRecord, ReportRecord

__all__ = [
    "AddressRecord",
    "CategoryRecord",
    "ReportRecord",
]
