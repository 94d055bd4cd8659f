"""Undirected report relationship graph with BFS and minimum spanning tree."""

import heapq
import logging
from collections import deque
from collections.abc import Iterable, Sequence

from report_engine.errors import RootNotFound
from report_engine.schemas.cache import SpanningEdge
from report_engine.schemas.report import Report
from report_engine.structures.geo import haversine_km, validate_coordinates

logger = logging.getLogger(__name__)


def group_reports(
    reports: Iterable[Report],
) -> tuple[dict[int, list[str]], dict[str, list[str]]]:
    """
    Partition report ids by category and by normalized neighborhood.

    Every report lands in exactly one category group. Reports with a blank
    or missing suburb are left out of the neighborhood groups.
    """
    by_category: dict[int, list[str]] = {}
    by_neighborhood: dict[str, list[str]] = {}
    for report in reports:
        by_category.setdefault(report.category_id, []).append(report.id)
        neighborhood = report.neighborhood
        if neighborhood:
            by_neighborhood.setdefault(neighborhood, []).append(report.id)
    return by_category, by_neighborhood


class RelationshipGraph:
    """
    Undirected weighted graph over report ids, stored as adjacency maps.

    At most one edge is kept per unordered pair of vertices; self-loops
    are ignored.
    """

    def __init__(self):
        self._adjacency: dict[str, dict[str, float]] = {}
        self._edge_count = 0

    @classmethod
    def from_reports(cls, reports: Sequence[Report]) -> "RelationshipGraph":
        """
        Connect reports that share a category or a neighborhood.

        Edges are built pairwise inside each group, O(g^2) per group, which
        is fine for bounded cache sizes.
        """
        graph = cls()
        for report in reports:
            graph.add_vertex(report.id)

        by_category, by_neighborhood = group_reports(reports)
        for group in (*by_category.values(), *by_neighborhood.values()):
            for i in range(len(group)):
                for j in range(i + 1, len(group)):
                    graph.add_edge(group[i], group[j])

        return graph

    @classmethod
    def geo_from_reports(cls, reports: Iterable[Report]) -> "RelationshipGraph":
        """
        Complete graph over located reports weighted by Haversine distance.

        Reports without both coordinates are left out, as are reports with
        malformed coordinates, which are logged.
        """
        graph = cls()
        located: list[Report] = []
        for report in reports:
            if report.coordinates is None:
                continue
            try:
                validate_coordinates(*report.coordinates)
            except ValueError as e:
                logger.warning(f"Leaving report {report.id} out of geo graph: {e}")
                continue
            located.append(report)
            graph.add_vertex(report.id)

        for i in range(len(located)):
            lat1, lon1 = located[i].coordinates
            for j in range(i + 1, len(located)):
                lat2, lon2 = located[j].coordinates
                graph.add_edge(located[i].id, located[j].id, haversine_km(lat1, lon1, lat2, lon2))

        return graph

    def __contains__(self, vertex: str) -> bool:
        return vertex in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def vertices(self) -> list[str]:
        return list(self._adjacency)

    def neighbors(self, vertex: str) -> dict[str, float]:
        """Neighbor ids mapped to edge weights."""
        return dict(self._adjacency.get(vertex, {}))

    def add_vertex(self, vertex: str) -> None:
        if vertex not in self._adjacency:
            self._adjacency[vertex] = {}

    def add_edge(self, a: str, b: str, weight: float = 1.0) -> None:
        """Add an undirected edge; an existing edge keeps its first weight."""
        if a == b:
            return
        self.add_vertex(a)
        self.add_vertex(b)
        if b in self._adjacency[a]:
            return
        self._adjacency[a][b] = weight
        self._adjacency[b][a] = weight
        self._edge_count += 1

    def breadth_first_from(self, root: str) -> list[str]:
        """
        Ids reachable from root in FIFO discovery order, each exactly once.

        Raises:
            RootNotFound: if root is not a vertex
        """
        if root not in self._adjacency:
            raise RootNotFound(root)

        visited = {root}
        order: list[str] = []
        queue = deque([root])
        while queue:
            vertex = queue.popleft()
            order.append(vertex)
            for neighbor in self._adjacency[vertex]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        return order

    def minimum_spanning_tree(self) -> list[SpanningEdge]:
        """
        Prim's algorithm from the smallest vertex id.

        The globally lightest pending edge is always taken next, with ties
        broken by (from_id, to_id) so output is reproducible. Only the
        component containing the start vertex is spanned.
        """
        if not self._adjacency:
            return []

        start = min(self._adjacency)
        visited = {start}
        pending = [(weight, start, neighbor) for neighbor, weight in self._adjacency[start].items()]
        heapq.heapify(pending)

        tree: list[SpanningEdge] = []
        while pending and len(visited) < len(self._adjacency):
            weight, source, target = heapq.heappop(pending)
            if target in visited:
                continue
            visited.add(target)
            tree.append(SpanningEdge(source, target, weight))
            for neighbor, next_weight in self._adjacency[target].items():
                if neighbor not in visited:
                    heapq.heappush(pending, (next_weight, target, neighbor))

        return tree
