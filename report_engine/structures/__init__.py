"""In-memory index structures rebuilt from each report snapshot."""

from report_engine.structures.geo import haversine_km
from report_engine.structures.graph import RelationshipGraph, group_reports
from report_engine.structures.heaps import (
    MaxHeap,
    MinHeap,
    RecencyHeap,
    UrgencyHeap,
    UrgencyScorer,
    default_urgency_score,
)
from report_engine.structures.ordered_index import OrderedIndex

__all__ = [
    "MaxHeap",
    "MinHeap",
    "OrderedIndex",
    "RecencyHeap",
    "RelationshipGraph",
    "UrgencyHeap",
    "UrgencyScorer",
    "default_urgency_score",
    "group_reports",
    "haversine_km",
]
