"""Binary heaps used to rank reports by urgency and recency."""

import logging
import math
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from report_engine.errors import EmptyStructure
from report_engine.schemas.report import Report

logger = logging.getLogger(__name__)

T = TypeVar("T")

UrgencyScorer = Callable[[Report], float]


def default_urgency_score(report: Report) -> float:
    """Lower score means more urgent."""
    return report.urgency_score


class _BinaryHeap(Generic[T]):
    """Array-backed binary heap ordered by a key function."""

    def __init__(self, key: Callable[[T], Any]):
        self._key = key
        self._entries: list[tuple[Any, T]] = []

    def _before(self, a: Any, b: Any) -> bool:
        raise NotImplementedError

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def insert(self, value: T) -> None:
        """Add a value in O(log n)."""
        self._insert_keyed(self._key(value), value)

    def _insert_keyed(self, key: Any, value: T) -> None:
        self._entries.append((key, value))
        self._sift_up(len(self._entries) - 1)

    def peek(self) -> T:
        """Return the top value without removing it."""
        if not self._entries:
            raise EmptyStructure("Heap is empty")
        return self._entries[0][1]

    def _extract(self) -> T:
        if not self._entries:
            raise EmptyStructure("Heap is empty")
        top = self._entries[0][1]
        last = self._entries.pop()
        if self._entries:
            self._entries[0] = last
            self._sift_down(0)
        return top

    def extract_top_k(self, k: int) -> list[T]:
        """
        Remove and return up to k values in priority order.

        Returns fewer than k values when the heap runs out; never raises.
        """
        result: list[T] = []
        while len(result) < k and self._entries:
            result.append(self._extract())
        return result

    def copy(self):
        """Shallow copy that can be consumed without touching this heap."""
        clone = self.__class__.__new__(self.__class__)
        clone._key = self._key
        clone._entries = list(self._entries)
        return clone

    def _sift_up(self, index: int) -> None:
        entries = self._entries
        while index > 0:
            parent = (index - 1) // 2
            if not self._before(entries[index][0], entries[parent][0]):
                break
            entries[index], entries[parent] = entries[parent], entries[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        entries = self._entries
        last_index = len(entries) - 1
        while True:
            left = 2 * index + 1
            right = 2 * index + 2
            best = index

            if left <= last_index and self._before(entries[left][0], entries[best][0]):
                best = left
            if right <= last_index and self._before(entries[right][0], entries[best][0]):
                best = right

            if best == index:
                break

            entries[index], entries[best] = entries[best], entries[index]
            index = best


class MinHeap(_BinaryHeap[T]):
    """Heap whose top is the value with the smallest key."""

    def _before(self, a: Any, b: Any) -> bool:
        return a < b

    def extract_min(self) -> T:
        return self._extract()


class MaxHeap(_BinaryHeap[T]):
    """Heap whose top is the value with the largest key."""

    def _before(self, a: Any, b: Any) -> bool:
        return a > b

    def extract_max(self) -> T:
        return self._extract()


class UrgencyHeap(MinHeap[Report]):
    """
    Min-heap of unresolved reports keyed by urgency score.

    Only reports whose status is Reported are admitted. Ties are broken by
    heap mechanics; callers must not rely on a secondary order.
    """

    def __init__(self, scorer: UrgencyScorer = default_urgency_score):
        super().__init__(key=lambda report: float(scorer(report)))

    @classmethod
    def from_reports(
        cls,
        reports: Iterable[Report],
        scorer: UrgencyScorer = default_urgency_score,
    ) -> "UrgencyHeap":
        heap = cls(scorer)
        for report in reports:
            if not report.status.is_unresolved:
                continue
            try:
                score = float(scorer(report))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping report {report.id} in urgency heap: {e}")
                continue
            if math.isnan(score):
                logger.warning(f"Skipping report {report.id} in urgency heap: score is NaN")
                continue
            heap._insert_keyed(score, report)
        return heap


class RecencyHeap(MaxHeap[Report]):
    """Max-heap of all reports keyed by reported_at (most recent first)."""

    def __init__(self):
        super().__init__(key=lambda report: report.reported_at)

    @classmethod
    def from_reports(cls, reports: Iterable[Report]) -> "RecencyHeap":
        heap = cls()
        for report in reports:
            heap.insert(report)
        return heap
