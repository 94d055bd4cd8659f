"""Database setup with SQLAlchemy async."""

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from report_engine.config import Settings, get_settings

REQUIRED_TABLES = ("reports", "addresses", "categories")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    settings = settings or get_settings()
    kwargs = {"echo": settings.debug, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(pool_size=5, max_overflow=10)
    return create_async_engine(settings.database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    # Import models so they register on Base.metadata
    from report_engine import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_ready(engine: AsyncEngine) -> None:
    """
    Verify database connectivity and expected schema.

    Checks that the tables read by the report store exist.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

        existing = await conn.run_sync(
            lambda sync_conn: set(inspect(sync_conn).get_table_names())
        )
        missing = [name for name in REQUIRED_TABLES if name not in existing]
        if missing:
            raise RuntimeError(
                f"Database schema is missing tables: {', '.join(missing)} "
                "(run database init or check migrations)."
            )
