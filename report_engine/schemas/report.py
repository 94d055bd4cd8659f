"""Pydantic schemas for issue reports."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ReportStatus(str, Enum):
    """Lifecycle status of an issue report."""

    REPORTED = "Reported"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"

    @property
    def label(self) -> str:
        """Human-readable label for status pickers."""
        return "In Progress" if self is ReportStatus.IN_PROGRESS else self.value

    @property
    def is_unresolved(self) -> bool:
        return self is ReportStatus.REPORTED


class Location(BaseModel):
    """Structured address attached to a report."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    street: str | None = None
    suburb: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    formatted_address: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def neighborhood(self) -> str | None:
        """Normalized suburb used to group reports, or None when blank."""
        if self.suburb is None:
            return None
        normalized = self.suburb.strip().lower()
        return normalized or None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        """(latitude, longitude) when both are present."""
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude

    def searchable_fields(self) -> list[str]:
        """Non-empty address parts matched by area searches."""
        fields = [
            self.street,
            self.suburb,
            self.city,
            self.province,
            self.country,
            self.formatted_address,
        ]
        return [f for f in fields if f]


class Report(BaseModel):
    """
    Snapshot of a citizen issue report as seen by the engine.

    Frozen so that a published index generation cannot be altered through
    the records it holds.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    reported_at: datetime
    category_id: int
    status: ReportStatus = ReportStatus.REPORTED
    urgency_score: float = 0
    description: str = ""
    title: str | None = None
    category_name: str | None = None
    location: Location | None = None

    @property
    def neighborhood(self) -> str | None:
        return self.location.neighborhood if self.location else None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        return self.location.coordinates if self.location else None
