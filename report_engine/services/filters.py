"""Predicate filters applied to the cached report snapshot."""

import logging
from dataclasses import dataclass
from datetime import datetime

from report_engine.schemas.report import Report, ReportStatus

logger = logging.getLogger(__name__)


def parse_status(status: ReportStatus | str | None) -> ReportStatus | None:
    """Resolve a status filter; unknown strings disable the filter."""
    if status is None or isinstance(status, ReportStatus):
        return status
    status_stripped = status.strip()
    if not status_stripped:
        return None
    for candidate in ReportStatus:
        if status_stripped.lower() in (candidate.value.lower(), candidate.label.lower()):
            return candidate
    logger.warning(f"Ignoring unknown status filter: {status}")
    return None


def split_area(area: str | None) -> list[str]:
    """Split a comma-separated area search into lower-cased parts."""
    if not area:
        return []
    return [part.strip().lower() for part in area.split(",") if part.strip()]


@dataclass(frozen=True)
class ReportFilter:
    """
    Listing filters for the report status page.

    Every populated field narrows the result; unset fields match anything.
    """

    report_id: str | None = None
    title: str | None = None
    area_parts: tuple[str, ...] = ()
    date_from: datetime | None = None
    date_to: datetime | None = None
    category_id: int | None = None
    status: ReportStatus | None = None

    @classmethod
    def build(
        cls,
        report_id: str | None = None,
        title: str | None = None,
        area: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        category_id: int | None = None,
        status: ReportStatus | str | None = None,
    ) -> "ReportFilter":
        report_id_stripped = report_id.strip() if report_id else None
        title_stripped = title.strip().lower() if title else None
        return cls(
            report_id=report_id_stripped or None,
            title=title_stripped or None,
            area_parts=tuple(split_area(area)),
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            status=parse_status(status),
        )

    @property
    def is_empty(self) -> bool:
        return self == ReportFilter()

    def matches(self, report: Report) -> bool:
        """Check whether a report passes every populated filter."""
        if self.report_id and self.report_id.lower() not in report.id.lower():
            return False

        if self.title:
            haystacks = [report.description, report.title or ""]
            if not any(self.title in text.lower() for text in haystacks):
                return False

        if self.area_parts:
            if report.location is None:
                return False
            fields = [f.lower() for f in report.location.searchable_fields()]
            for part in self.area_parts:
                if not any(part in field for field in fields):
                    return False

        if self.date_from and report.reported_at < self.date_from:
            return False
        if self.date_to and report.reported_at > self.date_to:
            return False

        if self.category_id is not None and report.category_id != self.category_id:
            return False

        if self.status is not None and report.status != self.status:
            return False

        return True
