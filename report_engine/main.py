"""Wiring for running the report engine inside a host service."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from report_engine.config import Settings, get_settings
from report_engine.database import check_db_ready, create_engine, create_session_maker
from report_engine.errors import SourceUnavailable
from report_engine.services.cache_manager import ReportCacheManager
from report_engine.services.http_store import HttpReportStore
from report_engine.services.record_store import InMemoryReportStore, RecordStore, SqlReportStore
from report_engine.tasks.scheduler import setup_scheduler, shutdown_scheduler

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    store: RecordStore | None = None,
) -> AsyncIterator[ReportCacheManager]:
    """
    Start the engine: verify the store, warm the cache, start refreshing.

    Yields the cache manager the host's listing layer queries.
    """
    settings = settings or get_settings()
    logger.info("Starting report engine...")

    engine = None
    if store is None:
        if settings.record_store == "sql":
            engine = create_engine(settings)
            try:
                await check_db_ready(engine)
                logger.info("Database ready")
            except Exception as e:
                logger.error(f"Database not ready: {e}")
                await engine.dispose()
                raise
            store = SqlReportStore(create_session_maker(engine), settings.urgency_score_column)
        elif settings.record_store == "http":
            store = HttpReportStore(
                base_url=settings.reports_api_base_url,
                api_token=settings.reports_api_token,
                max_retries=settings.http_max_retries,
                timeout=settings.http_timeout_seconds,
            )
        else:
            store = InMemoryReportStore()

    cache_manager = ReportCacheManager(store, settings=settings)

    try:
        await cache_manager.force_refresh()
        logger.info(f"Report cache warmed with {cache_manager.status().report_count} reports")
    except SourceUnavailable as e:
        # The scheduler retries; readers load on first use
        logger.error(f"Initial report cache load failed: {e}")

    setup_scheduler(cache_manager, settings)

    try:
        yield cache_manager
    finally:
        shutdown_scheduler()
        if engine is not None:
            await engine.dispose()
        logger.info("Report engine shut down")


async def main() -> None:
    """Run the engine standalone until interrupted."""
    settings = get_settings()
    configure_logging(settings)
    async with lifespan(settings):
        await asyncio.Event().wait()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
