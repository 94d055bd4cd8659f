"""One immutable generation of every index built from a single snapshot."""

import logging
import time
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from report_engine.schemas.cache import RelatedReports
from report_engine.schemas.report import Report
from report_engine.services.filters import ReportFilter
from report_engine.structures import (
    OrderedIndex,
    RecencyHeap,
    RelationshipGraph,
    UrgencyHeap,
    UrgencyScorer,
    default_urgency_score,
)

logger = logging.getLogger(__name__)


def prepare_snapshot(reports: Iterable[Report], max_reports: int) -> list[Report]:
    """
    Deduplicate by id and keep the newest max_reports reports.

    Ordering is by (reported_at, id) descending so the same store contents
    always produce the same snapshot.
    """
    seen: dict[str, Report] = {}
    for report in reports:
        if report.id in seen:
            logger.warning(f"Duplicate report id {report.id} in snapshot; keeping first")
            continue
        seen[report.id] = report

    ordered = sorted(seen.values(), key=lambda r: (r.reported_at, r.id), reverse=True)
    if len(ordered) > max_reports:
        logger.info(f"Snapshot truncated to newest {max_reports} of {len(ordered)} reports")
    return ordered[:max_reports]


@dataclass(frozen=True)
class IndexGeneration:
    """
    The report set and its four derived views, published as one unit.

    A generation is never mutated once built. Heap queries run against a
    copy so the published heaps stay whole.
    """

    number: int
    loaded_at: datetime
    reports: tuple[Report, ...]
    by_id: Mapping[str, Report]
    ordered_index: OrderedIndex[Report]
    urgency_heap: UrgencyHeap
    recency_heap: RecencyHeap
    graph: RelationshipGraph

    @classmethod
    def build(
        cls,
        reports: Iterable[Report],
        number: int,
        loaded_at: datetime,
        scorer: UrgencyScorer = default_urgency_score,
    ) -> "IndexGeneration":
        """Build every structure from one snapshot."""
        started = time.perf_counter()
        snapshot = tuple(reports)

        generation = cls(
            number=number,
            loaded_at=loaded_at,
            reports=snapshot,
            by_id=MappingProxyType({report.id: report for report in snapshot}),
            ordered_index=OrderedIndex.from_reports(snapshot),
            urgency_heap=UrgencyHeap.from_reports(snapshot, scorer),
            recency_heap=RecencyHeap.from_reports(snapshot),
            graph=RelationshipGraph.from_reports(snapshot),
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Built index generation {number}: {len(snapshot)} reports, "
            f"{len(generation.urgency_heap)} unresolved, "
            f"{generation.graph.edge_count} edges in {elapsed_ms:.1f}ms"
        )
        return generation

    @property
    def report_count(self) -> int:
        return len(self.reports)

    @property
    def unresolved_count(self) -> int:
        return len(self.urgency_heap)

    def chronological(self) -> Iterator[Report]:
        return self.ordered_index.in_order()

    def in_date_range(self, start: datetime | None, end: datetime | None) -> Iterator[Report]:
        return self.ordered_index.range_query(start, end)

    def filtered(self, report_filter: ReportFilter) -> Iterator[Report]:
        """Ascending traversal intersected with the filter predicate."""
        if report_filter.date_from or report_filter.date_to:
            candidates = self.in_date_range(report_filter.date_from, report_filter.date_to)
        else:
            candidates = self.chronological()
        return (report for report in candidates if report_filter.matches(report))

    def top_urgent(self, k: int) -> list[Report]:
        return self.urgency_heap.copy().extract_top_k(k)

    def top_recent(self, k: int) -> list[Report]:
        return self.recency_heap.copy().extract_top_k(k)

    def related_to(self, root_id: str, include_spanning_tree: bool = True) -> RelatedReports:
        """
        Reports transitively related to root_id, in BFS order.

        Raises:
            RootNotFound: if root_id is not in this generation
        """
        related_ids = self.graph.breadth_first_from(root_id)
        related = [self.by_id[report_id] for report_id in related_ids]

        spanning_tree = []
        if include_spanning_tree:
            geo_graph = RelationshipGraph.geo_from_reports(related)
            if len(geo_graph) > 1:
                spanning_tree = geo_graph.minimum_spanning_tree()

        return RelatedReports(root_id=root_id, reports=related, spanning_tree=spanning_tree)
