"""AVL tree keeping reports in chronological order."""

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

from report_engine.errors import EmptyStructure
from report_engine.schemas.report import Report

T = TypeVar("T")


class _Node(Generic[T]):
    __slots__ = ("value", "key", "left", "right", "height")

    def __init__(self, value: T, key: Any):
        self.value = value
        self.key = key
        self.left: _Node[T] | None = None
        self.right: _Node[T] | None = None
        self.height = 1


def _height(node: _Node | None) -> int:
    return node.height if node is not None else 0


def _update_height(node: _Node) -> None:
    node.height = 1 + max(_height(node.left), _height(node.right))


def _balance_factor(node: _Node | None) -> int:
    if node is None:
        return 0
    return _height(node.left) - _height(node.right)


def _rotate_right(y: _Node) -> _Node:
    x = y.left
    y.left = x.right
    x.right = y
    _update_height(y)
    _update_height(x)
    return x


def _rotate_left(x: _Node) -> _Node:
    y = x.right
    x.right = y.left
    y.left = x
    _update_height(x)
    _update_height(y)
    return y


def _rebalance(node: _Node) -> _Node:
    _update_height(node)
    balance = _balance_factor(node)

    # Left heavy
    if balance > 1:
        if _balance_factor(node.left) < 0:
            node.left = _rotate_left(node.left)
        return _rotate_right(node)

    # Right heavy
    if balance < -1:
        if _balance_factor(node.right) > 0:
            node.right = _rotate_right(node.right)
        return _rotate_left(node)

    return node


class OrderedIndex(Generic[T]):
    """
    Self-balancing binary search tree ordered by a key function.

    Features:
    - O(log n) insert
    - Lazy ascending traversal that can be restarted any number of times
    - Inclusive range queries that stop as soon as the upper bound is passed

    Duplicate keys are all retained. Equal keys descend to the right and
    rotations preserve in-order sequence, so ties come out in insertion
    order. There is no delete: indexes are rebuilt, not edited.
    """

    def __init__(self, key: Callable[[T], Any]):
        self._key = key
        self._root: _Node[T] | None = None
        self._size = 0

    @classmethod
    def from_reports(cls, reports: Iterable[Report]) -> "OrderedIndex[Report]":
        """Build a chronological index over reports keyed by reported_at."""
        index: OrderedIndex[Report] = cls(key=lambda report: report.reported_at)
        for report in reports:
            index.insert(report)
        return index

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        return self.in_order()

    @property
    def height(self) -> int:
        return _height(self._root)

    def insert(self, value: T) -> None:
        """Insert a value in O(log n)."""
        self._root = self._insert(self._root, value, self._key(value))
        self._size += 1

    def _insert(self, node: _Node[T] | None, value: T, key: Any) -> _Node[T]:
        if node is None:
            return _Node(value, key)

        if key < node.key:
            node.left = self._insert(node.left, value, key)
        else:
            node.right = self._insert(node.right, value, key)

        return _rebalance(node)

    def in_order(self) -> Iterator[T]:
        """Yield values in ascending key order."""
        stack: list[_Node[T]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.value
            node = node.right

    def range_query(self, start: Any = None, end: Any = None) -> Iterator[T]:
        """
        Yield values whose key lies in [start, end], ascending.

        Either bound may be None for an open-ended range.
        """
        stack: list[_Node[T]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                if start is not None and node.key < start:
                    # Everything on the left is <= node.key, so skip it
                    node = node.right
                else:
                    stack.append(node)
                    node = node.left
            if not stack:
                return
            node = stack.pop()
            if end is not None and node.key > end:
                return
            yield node.value
            node = node.right

    def first(self) -> T:
        """Return the value with the smallest key."""
        if self._root is None:
            raise EmptyStructure("Ordered index is empty")
        node = self._root
        while node.left is not None:
            node = node.left
        return node.value

    def last(self) -> T:
        """Return the value with the largest key."""
        if self._root is None:
            raise EmptyStructure("Ordered index is empty")
        node = self._root
        while node.right is not None:
            node = node.right
        return node.value
