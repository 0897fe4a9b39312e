"""B+ tree nodes: sorted leaves linked for scanning, and routing internal nodes."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Any, Callable, Iterator, Optional, Union

LEAF_CAPACITY = 14
"""Maximum number of entries a leaf holds."""

NODE_CAPACITY = 15
"""Maximum number of children an internal node points to."""


class Leaf:
    """A sorted run of key-value pairs, linked to its neighbours."""

    __slots__ = ("keys", "values", "next", "prev")

    def __init__(self) -> None:
        self.keys: list[Any] = []
        self.values: list[Any] = []
        self.next: Optional[Leaf] = None
        self.prev: Optional[Leaf] = None

    def _position(self, key: Any) -> int:
        index = bisect_left(self.keys, key)
        if index < len(self.keys) and self.keys[index] == key:
            return index
        return -1

    def search(self, key: Any) -> Any:
        """Return the value stored under ``key``; raise KeyError if absent."""
        index = self._position(key)
        if index < 0:
            raise KeyError(key)
        return self.values[index]

    def insert(self, key: Any, value: Any) -> bool:
        """Insert a pair; return False if the key exists, raise OverflowError if full."""
        index = bisect_left(self.keys, key)
        if index < len(self.keys) and self.keys[index] == key:
            return False
        if self.is_full():
            raise OverflowError("leaf is full")
        self.keys.insert(index, key)
        self.values.insert(index, value)
        return True

    def remove_if(self, key: Any, condition: Callable[[Any], bool]) -> bool:
        """Remove the pair under ``key`` if ``condition(value)`` holds."""
        index = self._position(key)
        if index < 0 or not condition(self.values[index]):
            return False
        del self.keys[index]
        del self.values[index]
        return True

    def is_full(self) -> bool:
        return len(self.keys) >= LEAF_CAPACITY

    def split(self) -> tuple[Any, Leaf]:
        """Move the upper half into a new right neighbour; return (separator, right)."""
        if len(self.keys) < 2:
            raise ValueError("a leaf needs at least two entries to split")
        middle = len(self.keys) // 2
        right = Leaf()
        right.keys = self.keys[middle:]
        right.values = self.values[middle:]
        del self.keys[middle:]
        del self.values[middle:]
        right.next = self.next
        if self.next is not None:
            self.next.prev = right
        self.next = right
        right.prev = self
        return right.keys[0], right

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(list(zip(self.keys, self.values)))

    def __repr__(self) -> str:
        return f"Leaf({dict(zip(self.keys, self.values))!r})"


Node = Union[Leaf, "InternalNode"]


class InternalNode:
    """Routes keys to children; ``separators[i]`` is the least key of ``children[i + 1]``."""

    __slots__ = ("separators", "children")

    def __init__(self, separators: list[Any], children: list[Node]) -> None:
        if not children or len(children) != len(separators) + 1:
            raise ValueError("an internal node needs one more child than separators")
        self.separators = list(separators)
        self.children = list(children)

    def _index_for(self, key: Any) -> int:
        return bisect_right(self.separators, key)

    def child_for(self, key: Any) -> Node:
        """Return the child whose key range covers ``key``."""
        return self.children[self._index_for(key)]

    def is_full(self) -> bool:
        return len(self.children) >= NODE_CAPACITY

    def split(self) -> tuple[Any, InternalNode]:
        """Move the upper half of the children into a new node; return (separator, right)."""
        if len(self.children) < 2:
            raise ValueError("an internal node needs at least two children to split")
        middle = len(self.children) // 2
        promoted = self.separators[middle - 1]
        right = InternalNode(self.separators[middle:], self.children[middle:])
        del self.separators[middle - 1 :]
        del self.children[middle:]
        return promoted, right

    def __repr__(self) -> str:
        return f"InternalNode(separators={self.separators!r}, children={len(self.children)})"


class Root:
    """Holder of the top node of a B+ tree; ``node`` is None while the tree is empty."""

    def __init__(self) -> None:
        self.node: Optional[Node] = None

    def _descend(self, key: Any) -> Optional[Leaf]:
        node = self.node
        while isinstance(node, InternalNode):
            node = node.child_for(key)
        return node

    def search(self, key: Any) -> Any:
        """Return the value stored under ``key``; raise KeyError if absent."""
        leaf = self._descend(key)
        if leaf is None:
            raise KeyError(key)
        return leaf.search(key)

    def _contains(self, key: Any) -> bool:
        try:
            self.search(key)
        except KeyError:
            return False
        return True

    def insert(self, key: Any, value: Any) -> bool:
        """Insert a pair; return False if the key already exists."""
        if self.node is None:
            self.node = Leaf()
        elif self._contains(key):
            return False

        if self.node.is_full():
            separator, right = self.node.split()
            self.node = InternalNode([separator], [self.node, right])

        node = self.node
        while isinstance(node, InternalNode):
            index = node._index_for(key)
            child = node.children[index]
            if child.is_full():
                separator, right = child.split()
                node.separators.insert(index, separator)
                node.children.insert(index + 1, right)
                if not key < separator:
                    child = right
            node = child
        return node.insert(key, value)

    def remove_if(self, key: Any, condition: Callable[[Any], bool]) -> bool:
        """Remove the pair under ``key`` if ``condition(value)`` holds."""
        node = self.node
        if node is None:
            return False
        path: list[tuple[InternalNode, int]] = []
        while isinstance(node, InternalNode):
            index = node._index_for(key)
            path.append((node, index))
            node = node.children[index]
        if not node.remove_if(key, condition):
            return False
        if len(node) == 0:
            self._detach(node, path)
        return True

    def _detach(self, leaf: Leaf, path: list[tuple[InternalNode, int]]) -> None:
        if leaf.prev is not None:
            leaf.prev.next = leaf.next
        if leaf.next is not None:
            leaf.next.prev = leaf.prev
        # leaf.next is kept so that a scan parked on this leaf can move on.
        leaf.prev = None
        for parent, index in reversed(path):
            del parent.children[index]
            if parent.separators:
                del parent.separators[max(index - 1, 0)]
            if parent.children:
                break
        else:
            self.node = None
        while isinstance(self.node, InternalNode) and len(self.node.children) == 1:
            self.node = self.node.children[0]

    def first_leaf(self) -> Optional[Leaf]:
        """Return the leaf holding the least keys, or None if empty."""
        node = self.node
        while isinstance(node, InternalNode):
            node = node.children[0]
        return node

    def leaf_for(self, key: Any) -> Optional[Leaf]:
        """Return the leaf whose key range covers ``key``, or None if empty."""
        return self._descend(key)

    def depth(self) -> int:
        """Number of levels: 0 when empty, 1 for a single leaf."""
        levels = 0
        node = self.node
        while node is not None:
            levels += 1
            node = node.children[0] if isinstance(node, InternalNode) else None
        return levels

    def is_empty(self) -> bool:
        return self.node is None