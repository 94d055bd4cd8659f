"""Background task scheduler for report cache refresh."""

import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from report_engine.config import Settings, get_settings
from report_engine.services.cache_manager import ReportCacheManager

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def refresh_report_cache_job(cache_manager: ReportCacheManager) -> None:
    """Background job to rebuild the report indexes from the record store."""
    logger.info("Starting scheduled report cache refresh")
    try:
        refreshed = await cache_manager.background_refresh()
        if refreshed:
            status = cache_manager.status()
            logger.info(
                f"Report cache refresh complete: generation {status.generation}, "
                f"{status.report_count} reports"
            )
    except Exception as e:
        # Retried on the next tick; the previous generation keeps serving
        logger.error(f"Report cache refresh failed: {e}", exc_info=True)


def setup_scheduler(
    cache_manager: ReportCacheManager,
    settings: Settings | None = None,
    run_immediately: bool = False,
) -> AsyncIOScheduler:
    """Set up and start the background refresh scheduler."""
    global scheduler

    settings = settings or get_settings()
    interval = timedelta(minutes=settings.refresh_interval_minutes)
    now = datetime.now(UTC)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        refresh_report_cache_job,
        trigger=IntervalTrigger(seconds=interval.total_seconds()),
        args=[cache_manager],
        next_run_time=now if run_immediately else now + interval,
        id="refresh_report_cache",
        name="Rebuild report indexes from the record store",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started (refresh every {settings.refresh_interval_minutes} min)")

    return scheduler


def shutdown_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
        scheduler = None
