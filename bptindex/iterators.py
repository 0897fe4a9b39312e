"""Ascending scans over the leaves of a B+ tree."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Any, Optional

from bptindex.nodes import Leaf, Root

_UNSET = object()


class Visitor:
    """Yields every (key, value) pair in ascending key order.

    Keys are strictly increasing even when the tree changes during the scan;
    pairs present for the whole scan are always visited.
    """

    def __init__(self, root: Root) -> None:
        self._root = root
        self._leaf: Optional[Leaf] = None
        self._last: Any = _UNSET
        self._started = False
        self._done = False

    def _start_leaf(self) -> Optional[Leaf]:
        return self._root.first_leaf()

    def _start_index(self, keys: list[Any]) -> int:
        return 0

    def _within_end(self, key: Any) -> bool:
        return True

    def __iter__(self) -> Visitor:
        return self

    def __next__(self) -> tuple[Any, Any]:
        if self._done:
            raise StopIteration
        if not self._started:
            self._started = True
            self._leaf = self._start_leaf()
        while self._leaf is not None:
            keys = self._leaf.keys
            if self._last is _UNSET:
                index = self._start_index(keys)
            else:
                index = bisect_right(keys, self._last)
            if index < len(keys):
                key = keys[index]
                value = self._leaf.values[index]
                if not self._within_end(key):
                    break
                self._last = key
                return key, value
            self._leaf = self._leaf.next
        self._done = True
        self._leaf = None
        raise StopIteration


class Range(Visitor):
    """Yields the pairs whose keys lie between ``start`` and ``end``.

    A bound of None is unbounded. By default the start is included and the
    end excluded.
    """

    def __init__(
        self,
        root: Root,
        start: Any = None,
        end: Any = None,
        start_inclusive: bool = True,
        end_inclusive: bool = False,
    ) -> None:
        super().__init__(root)
        self._start = start
        self._end = end
        self._start_inclusive = start_inclusive
        self._end_inclusive = end_inclusive

    def __iter__(self) -> Range:
        return self

    def __next__(self) -> tuple[Any, Any]:
        return super().__next__()

    def _start_leaf(self) -> Optional[Leaf]:
        if self._start is None:
            return self._root.first_leaf()
        return self._root.leaf_for(self._start)

    def _start_index(self, keys: list[Any]) -> int:
        if self._start is None:
            return 0
        if self._start_inclusive:
            return bisect_left(keys, self._start)
        return bisect_right(keys, self._start)

    def _within_end(self, key: Any) -> bool:
        if self._end is None:
            return True
        if self._end_inclusive:
            return not self._end < key
        return key < self._end