"""An ordered key-value index built on a B+ tree."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Iterator, Optional, TypeVar

from bptindex.iterators import Range, Visitor
from bptindex.nodes import Root

R = TypeVar("R")


class DuplicateKeyError(KeyError):
    """Raised when inserting a key that is already present.

    The rejected pair is kept on ``key`` and ``value``.
    """

    def __init__(self, key: Any, value: Any) -> None:
        super().__init__(key, value)
        self.key = key
        self.value = value

    def __str__(self) -> str:
        return f"key already present: {self.key!r}"


class TreeIndex:
    """Ordered index of key-value pairs, safe to share between threads and tasks.

    Writes are serialised; scans run without the lock and are guaranteed to
    see, in ascending order, every pair that exists for the whole scan.
    """

    def __init__(self) -> None:
        self._root = Root()
        self._lock = threading.RLock()

    def insert(self, key: Any, value: Any) -> None:
        """Insert a pair; raise DuplicateKeyError if the key exists."""
        with self._lock:
            if not self._root.insert(key, value):
                raise DuplicateKeyError(key, value)

    async def insert_async(self, key: Any, value: Any) -> None:
        """Insert a pair, yielding to the event loop first."""
        await asyncio.sleep(0)
        self.insert(key, value)

    def remove(self, key: Any) -> bool:
        """Remove the pair under ``key``; return False if it does not exist."""
        return self.remove_if(key, lambda _value: True)

    async def remove_async(self, key: Any) -> bool:
        """Remove the pair under ``key``, yielding to the event loop first."""
        return await self.remove_if_async(key, lambda _value: True)

    def remove_if(self, key: Any, condition: Callable[[Any], bool]) -> bool:
        """Remove the pair under ``key`` if ``condition(value)`` holds."""
        with self._lock:
            return self._root.remove_if(key, condition)

    async def remove_if_async(self, key: Any, condition: Callable[[Any], bool]) -> bool:
        """Conditional removal, yielding to the event loop first."""
        await asyncio.sleep(0)
        return self.remove_if(key, condition)

    def read(self, key: Any, reader: Callable[[Any, Any], R]) -> Optional[R]:
        """Return ``reader(key, value)`` for the stored pair, or None if absent."""
        with self._lock:
            try:
                value = self._root.search(key)
            except KeyError:
                return None
        return reader(key, value)

    def clear(self) -> None:
        """Remove every pair."""
        with self._lock:
            self._root.node = None

    def __len__(self) -> int:
        return sum(1 for _ in self.iter())

    def is_empty(self) -> bool:
        return self._root.is_empty() or len(self) == 0

    def depth(self) -> int:
        """Number of tree levels; 0 when empty."""
        with self._lock:
            return self._root.depth()

    def iter(self) -> Visitor:
        """Return a scan over all pairs in ascending key order."""
        return Visitor(self._root)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return self.iter()

    def range(
        self,
        start: Any = None,
        end: Any = None,
        start_inclusive: bool = True,
        end_inclusive: bool = False,
    ) -> Range:
        """Return a scan over the pairs with keys between ``start`` and ``end``."""
        return Range(self._root, start, end, start_inclusive, end_inclusive)

    def copy(self) -> TreeIndex:
        """Return a new index holding the same pairs."""
        cloned = TreeIndex()
        for key, value in self.iter():
            try:
                cloned.insert(key, value)
            except DuplicateKeyError:
                pass
        return cloned

    def __copy__(self) -> TreeIndex:
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeIndex):
            return NotImplemented
        return list(self.iter()) == list(other.iter())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        entries = ", ".join(f"{key!r}: {value!r}" for key, value in self.iter())
        return f"TreeIndex({{{entries}}})"