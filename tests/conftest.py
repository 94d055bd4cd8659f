"""Pytest fixtures for report engine tests."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from report_engine.config import Settings
from report_engine.database import create_session_maker, init_db
from report_engine.schemas.report import Location, Report, ReportStatus
from report_engine.services.cache_manager import ReportCacheManager
from report_engine.services.record_store import InMemoryReportStore

# SQLite keeps SQL store tests self-contained
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    """Controllable clock for TTL tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_report(
    report_id: str,
    reported_at: datetime,
    category_id: int = 1,
    status: ReportStatus = ReportStatus.REPORTED,
    urgency_score: float = 0,
    suburb: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    description: str = "Pothole on the main road",
    street: str | None = None,
    city: str | None = None,
    title: str | None = None,
) -> Report:
    """Build a report; a location is attached only when an address part is given."""
    location = None
    if any(v is not None for v in (suburb, latitude, longitude, street, city)):
        location = Location(
            street=street,
            suburb=suburb,
            city=city,
            latitude=latitude,
            longitude=longitude,
        )
    return Report(
        id=report_id,
        reported_at=reported_at,
        category_id=category_id,
        status=status,
        urgency_score=urgency_score,
        description=description,
        title=title,
        location=location,
    )


@pytest.fixture
def report_factory() -> Callable[..., Report]:
    return make_report


@pytest.fixture
def sample_datetime() -> datetime:
    """Sample datetime for testing."""
    return datetime(2024, 1, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults."""
    return Settings(
        _env_file=None,
        record_store="memory",
        database_url=TEST_DATABASE_URL,
        cache_ttl_minutes=5,
        max_cached_reports=2000,
        refresh_interval_minutes=5,
    )


@pytest.fixture
def scenario_reports() -> list[Report]:
    """R1(cat=1, Jan 1), R2(cat=1, Jan 3), R3(cat=2, Jan 2)."""
    return [
        make_report("R1", datetime(2024, 1, 1, tzinfo=UTC), category_id=1),
        make_report("R2", datetime(2024, 1, 3, tzinfo=UTC), category_id=1),
        make_report("R3", datetime(2024, 1, 2, tzinfo=UTC), category_id=2),
    ]


@pytest.fixture
def city_reports() -> list[Report]:
    """Mixed statuses, categories, suburbs and coordinates around Cape Town."""
    return [
        make_report(
            "water-1",
            datetime(2024, 3, 1, 8, 0, tzinfo=UTC),
            category_id=10,
            urgency_score=3,
            suburb="Sea Point",
            street="Main Road",
            city="Cape Town",
            latitude=-33.9180,
            longitude=18.3870,
            description="Burst water pipe",
        ),
        make_report(
            "water-2",
            datetime(2024, 3, 2, 9, 30, tzinfo=UTC),
            category_id=10,
            urgency_score=1,
            status=ReportStatus.IN_PROGRESS,
            suburb="Green Point",
            city="Cape Town",
            latitude=-33.9050,
            longitude=18.4050,
            description="Low water pressure",
        ),
        make_report(
            "roads-1",
            datetime(2024, 3, 3, 14, 0, tzinfo=UTC),
            category_id=20,
            urgency_score=2,
            suburb="  SEA POINT ",
            street="Beach Road",
            city="Cape Town",
            latitude=-33.9120,
            longitude=18.3900,
            description="Pothole near the promenade",
        ),
        make_report(
            "roads-2",
            datetime(2024, 3, 4, 7, 15, tzinfo=UTC),
            category_id=20,
            urgency_score=5,
            suburb="Observatory",
            city="Cape Town",
            description="Broken traffic light",
        ),
        make_report(
            "waste-1",
            datetime(2024, 3, 5, 11, 45, tzinfo=UTC),
            category_id=30,
            urgency_score=0,
            status=ReportStatus.RESOLVED,
            suburb="Woodstock",
            city="Cape Town",
            latitude=-33.9270,
            longitude=18.4470,
            description="Missed refuse collection",
        ),
        make_report(
            "waste-2",
            datetime(2024, 3, 6, 16, 20, tzinfo=UTC),
            category_id=30,
            urgency_score=4,
            status=ReportStatus.CLOSED,
            suburb="woodstock",
            description="Illegal dumping",
        ),
    ]


@pytest.fixture
def memory_store(city_reports) -> InMemoryReportStore:
    return InMemoryReportStore(city_reports)


@pytest.fixture
def cache_manager(memory_store, test_settings, clock) -> ReportCacheManager:
    return ReportCacheManager(memory_store, settings=test_settings, clock=clock)


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for testing."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory over freshly created tables."""
    await init_db(async_engine)
    return create_session_maker(async_engine)
