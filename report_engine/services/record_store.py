"""Record store adapters the report cache reads its snapshots from."""

import logging
from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from report_engine.config import get_settings
from report_engine.errors import SourceUnavailable
from report_engine.models import ReportRecord
from report_engine.schemas.report import Location, Report, ReportStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    """The two reads the engine needs from the authoritative report store."""

    async def fetch_all(self) -> list[Report]: ...

    async def fetch_by_id(self, report_id: str) -> Report | None: ...


class InMemoryReportStore:
    """
    Dictionary-backed store keyed by report id.

    Used when the engine is embedded next to an in-memory repository, and
    in tests.
    """

    def __init__(self, reports: list[Report] | None = None):
        self._reports: dict[str, Report] = {}
        for report in reports or []:
            self.add(report)

    def __len__(self) -> int:
        return len(self._reports)

    def add(self, report: Report) -> Report:
        if report.id in self._reports:
            raise ValueError(f"Report {report.id} already exists")
        self._reports[report.id] = report
        return report

    def update(self, report: Report) -> bool:
        if report.id not in self._reports:
            return False
        self._reports[report.id] = report
        return True

    def delete(self, report_id: str) -> bool:
        return self._reports.pop(report_id, None) is not None

    async def fetch_all(self) -> list[Report]:
        return list(self._reports.values())

    async def fetch_by_id(self, report_id: str) -> Report | None:
        return self._reports.get(report_id)


class SqlReportStore:
    """
    Reads reports, with their category and address, through async SQLAlchemy.

    Features:
    - Eager-loads address and category in one round trip per table
    - Maps the configured urgency column onto Report.urgency_score
    - Wraps driver errors in SourceUnavailable
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        urgency_score_column: str | None = None,
    ):
        self.session_maker = session_maker
        self.urgency_score_column = urgency_score_column or get_settings().urgency_score_column
        if self.urgency_score_column not in ("urgency_score", "priority_level"):
            raise ValueError(f"Unsupported urgency column: {self.urgency_score_column}")

    def _urgency_of(self, row: ReportRecord) -> float:
        if self.urgency_score_column == "priority_level":
            value = row.priority_level
        else:
            value = row.urgency_score
        return float(value) if value is not None else 0.0

    def _to_report(self, row: ReportRecord) -> Report:
        location = None
        if row.address is not None:
            location = Location.model_validate(row.address)

        return Report(
            id=row.id,
            reported_at=row.reported_at,
            category_id=row.category_id,
            status=ReportStatus(row.status),
            urgency_score=self._urgency_of(row),
            description=row.description or "",
            title=row.title,
            category_name=row.category.name if row.category else None,
            location=location,
        )

    def _query(self):
        return select(ReportRecord).options(
            selectinload(ReportRecord.address),
            selectinload(ReportRecord.category),
        )

    def _convert(self, rows: list[ReportRecord]) -> list[Report]:
        reports = []
        for row in rows:
            try:
                reports.append(self._to_report(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed report row {row.id}: {e}")
        return reports

    async def fetch_all(self) -> list[Report]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(self._query())
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            raise SourceUnavailable(f"Database read failed: {e}") from e

        reports = self._convert(rows)
        logger.info(f"Fetched {len(reports)} reports from database")
        return reports

    async def fetch_by_id(self, report_id: str) -> Report | None:
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    self._query().where(ReportRecord.id == report_id)
                )
                row = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise SourceUnavailable(f"Database read failed: {e}") from e

        if row is None:
            return None
        converted = self._convert([row])
        return converted[0] if converted else None
