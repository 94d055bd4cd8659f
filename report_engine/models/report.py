"""Report, address and category tables read by the SQL record store."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from report_engine.database import Base


class CategoryRecord(Base):
    """Issue category a report is filed under."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    department_id: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<CategoryRecord {self.id}: {self.name}>"


class AddressRecord(Base):
    """Structured address captured by the report form's address lookup."""

    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(primary_key=True)
    street: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    suburb: Mapped[str | None] = mapped_column(String(100), index=True)
    city: Mapped[str | None] = mapped_column(String(100))
    province: Mapped[str | None] = mapped_column(String(100))
    postal_code: Mapped[str | None] = mapped_column(String(20))
    country: Mapped[str | None] = mapped_column(String(100))
    formatted_address: Mapped[str | None] = mapped_column(String(500))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)


class ReportRecord(Base):
    """
    Citizen issue report as persisted by the reporting application.

    The engine only reads this table.
    """

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    reported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Classification
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Reported")

    # Content
    title: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Ranking inputs; which one feeds the urgency heap is configurable
    urgency_score: Mapped[float | None] = mapped_column(Float)
    priority_level: Mapped[int | None] = mapped_column(Integer)

    # Location
    address_id: Mapped[int | None] = mapped_column(ForeignKey("addresses.id"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    category: Mapped[CategoryRecord | None] = relationship(lazy="raise")
    address: Mapped[AddressRecord | None] = relationship(lazy="raise")

    __table_args__ = (
        Index("ix_reports_category_id", "category_id"),
        Index("ix_reports_status", "status"),
        Index("idx_reports_reported_at", reported_at.desc(), id.desc()),
    )

    def __repr__(self) -> str:
        return f"<ReportRecord {self.id}: {self.status}>"
