"""Cache manager serving report queries from atomically swapped index generations."""

import asyncio
import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from report_engine.config import Settings, get_settings
from report_engine.errors import SourceUnavailable
from report_engine.schemas.cache import CacheState, CacheStatus, RelatedReports
from report_engine.schemas.report import Report, ReportStatus
from report_engine.services.filters import ReportFilter
from report_engine.services.generation import IndexGeneration, prepare_snapshot
from report_engine.services.record_store import RecordStore
from report_engine.structures import UrgencyScorer, default_urgency_score

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReportCacheManager:
    """
    Serves report views from the current index generation.

    States:
    - Cold: nothing loaded yet; the first caller waits for the initial load
    - Fresh: a generation exists and is younger than the TTL
    - Stale: the TTL elapsed or a refresh was forced

    At most one reload runs at a time. A reload fetches one snapshot, builds
    every structure in a worker thread and publishes the result by swapping
    a single reference, so readers see either the old generation or the new
    one. While a reload is in flight, readers keep getting the previous
    generation.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Settings | None = None,
        scorer: UrgencyScorer = default_urgency_score,
        clock: Callable[[], datetime] = _utcnow,
    ):
        settings = settings or get_settings()
        self.store = store
        self.ttl = timedelta(minutes=settings.cache_ttl_minutes)
        self.max_reports = settings.max_cached_reports
        self.serve_stale_on_error = settings.serve_stale_on_error
        self.scorer = scorer
        self._clock = clock

        self._generation: IndexGeneration | None = None
        self._generation_counter = itertools.count(1)
        self._force_stale = False
        self._invalidations = 0
        self._refresh_lock = asyncio.Lock()
        self._last_error: str | None = None
        self._last_error_at: datetime | None = None

    @property
    def state(self) -> CacheState:
        generation = self._generation
        if generation is None:
            return CacheState.COLD
        if self._force_stale or self._clock() - generation.loaded_at >= self.ttl:
            return CacheState.STALE
        return CacheState.FRESH

    @property
    def generation(self) -> IndexGeneration | None:
        """The published generation, without triggering a reload."""
        return self._generation

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_lock.locked()

    def invalidate(self) -> None:
        """Mark the cache Stale so the next read reloads it."""
        self._invalidations += 1
        self._force_stale = True

    async def _reload(self) -> IndexGeneration:
        """Fetch, build and publish a new generation. Caller holds the lock."""
        loaded_at = self._clock()
        invalidations_seen = self._invalidations
        try:
            reports = await self.store.fetch_all()
        except SourceUnavailable as e:
            self._record_failure(e)
            raise
        except Exception as e:
            self._record_failure(e)
            raise SourceUnavailable(f"Record store fetch failed: {e}") from e

        snapshot = prepare_snapshot(reports, self.max_reports)
        generation = await asyncio.to_thread(
            IndexGeneration.build,
            snapshot,
            next(self._generation_counter),
            loaded_at,
            self.scorer,
        )

        # Single reference swap publishes every structure at once
        self._generation = generation
        # An invalidate() after the fetch started still needs another reload
        if self._invalidations == invalidations_seen:
            self._force_stale = False
        self._last_error = None
        self._last_error_at = None
        return generation

    def _record_failure(self, error: Exception) -> None:
        self._last_error = str(error)
        self._last_error_at = self._clock()
        logger.error(f"Report cache reload failed: {error}")

    async def _current(self) -> IndexGeneration:
        """Return a generation to serve, reloading when Cold or Stale."""
        generation = self._generation
        if generation is not None:
            if self.state is CacheState.FRESH:
                return generation
            if self._refresh_lock.locked():
                # Serve the previous generation until the swap completes
                return generation

        async with self._refresh_lock:
            # Another caller may have reloaded while we waited
            if self._generation is not None and self.state is CacheState.FRESH:
                return self._generation
            try:
                return await self._reload()
            except SourceUnavailable:
                if self.serve_stale_on_error and self._generation is not None:
                    logger.warning(
                        f"Serving stale generation {self._generation.number} after reload failure"
                    )
                    return self._generation
                raise

    async def force_refresh(self) -> None:
        """
        Reload now, even if the cache is Fresh.

        Waits for an in-flight reload first, then fetches again so that
        writes made before this call are reflected.

        Raises:
            SourceUnavailable: if the store cannot be read; the previous
                generation stays published and the cache stays Stale
        """
        self.invalidate()
        async with self._refresh_lock:
            await self._reload()

    async def background_refresh(self) -> bool:
        """
        Periodic reload used by the scheduler.

        Skipped when a reload is already running. Returns True when a new
        generation was published.
        """
        if self._refresh_lock.locked():
            logger.info("Report cache refresh already in progress; skipping tick")
            return False
        async with self._refresh_lock:
            await self._reload()
        return True

    async def list_chronological(self) -> list[Report]:
        """All cached reports, oldest first."""
        generation = await self._current()
        return list(generation.chronological())

    async def list_in_date_range(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[Report]:
        """Cached reports with reported_at in [start, end], oldest first."""
        generation = await self._current()
        return list(generation.in_date_range(start, end))

    async def list_filtered(
        self,
        report_id: str | None = None,
        title: str | None = None,
        area: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        category_id: int | None = None,
        status: ReportStatus | str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Report]:
        """
        Filter the cached snapshot, oldest first.

        Args:
            report_id: Exact id or id fragment
            title: Case-insensitive substring of title or description
            area: Comma-separated parts that must each match an address field
            date_from: Inclusive lower bound on reported_at
            date_to: Inclusive upper bound on reported_at
            category_id: Category to keep
            status: Status to keep; unknown strings are ignored
            offset: Matches to skip
            limit: Maximum matches to return

        Returns:
            Matching reports in ascending reported_at order
        """
        if offset < 0 or (limit is not None and limit < 0):
            raise ValueError("offset and limit must not be negative")

        report_filter = ReportFilter.build(
            report_id=report_id,
            title=title,
            area=area,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            status=status,
        )
        generation = await self._current()
        matches = generation.filtered(report_filter)
        stop = offset + limit if limit is not None else None
        return list(itertools.islice(matches, offset, stop))

    async def top_urgent(self, k: int) -> list[Report]:
        """Up to k unresolved reports, most urgent first."""
        generation = await self._current()
        return generation.top_urgent(k)

    async def top_recent(self, k: int) -> list[Report]:
        """Up to k reports, most recent first."""
        generation = await self._current()
        return generation.top_recent(k)

    async def related_to(self, root_id: str, include_spanning_tree: bool = True) -> RelatedReports:
        """
        Reports sharing a category or neighborhood with root_id, transitively.

        Raises:
            RootNotFound: if root_id is not in the current snapshot
        """
        generation = await self._current()
        return generation.related_to(root_id, include_spanning_tree=include_spanning_tree)

    async def get_report(self, report_id: str) -> Report | None:
        """A cached report, or a direct store read for reports not cached yet."""
        generation = await self._current()
        report = generation.by_id.get(report_id)
        if report is not None:
            return report
        return await self.store.fetch_by_id(report_id)

    def status(self) -> CacheStatus:
        """Health view of the cache; never triggers a reload."""
        generation = self._generation
        return CacheStatus(
            state=self.state,
            generation=generation.number if generation else None,
            loaded_at=generation.loaded_at if generation else None,
            expires_at=generation.loaded_at + self.ttl if generation else None,
            report_count=generation.report_count if generation else 0,
            unresolved_count=generation.unresolved_count if generation else 0,
            refresh_in_progress=self.refresh_in_progress,
            last_error=self._last_error,
            last_error_at=self._last_error_at,
        )
