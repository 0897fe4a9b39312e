# bptindex

`bptindex` provides `TreeIndex`, an ordered key-value index built on a B+ tree.
Keys are kept in ascending order, so the index can be walked from the smallest
key upward or scanned over a bounded range of keys. The insert and remove
operations each have an `async` counterpart for use inside asyncio code.

A leaf holds at most 14 entries and an internal node points to at most 15
children. Full nodes are split on the way down during an insert, which can
add a level at the top. A leaf that becomes empty after a removal is taken
out of the tree, and a top node left with a single child is replaced by that
child; nodes that are only partly empty are not merged.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Usage

```python
from bptindex.tree_index import TreeIndex, DuplicateKeyError

index = TreeIndex()
index.insert(1, 10)
index.insert(3, 30)
index.insert(2, 20)

try:
    index.insert(1, 11)
except DuplicateKeyError as error:
    print(error.key, error.value)         # 1 11: the rejected pair

index.read(1, lambda key, value: value)   # 10
index.read(9, lambda key, value: value)   # None: the key is absent

list(index)                               # [(1, 10), (2, 20), (3, 30)]
list(index.range(2, None))                # [(2, 20), (3, 30)]

index.remove_if(1, lambda value: value == 0)   # False, condition not met
index.remove(1)                                 # True
index.remove(1)                                 # False, already gone
len(index)                                      # 2
index.depth()                                   # 1

copied = index.copy()
copied == index                                 # True
index.clear()
index.is_empty()                                # True
index.depth()                                   # 0
```

`DuplicateKeyError` is a subclass of `KeyError`. `len()` walks every leaf, so
it takes time proportional to the number of entries. `copy()` (also used by
`copy.copy`) builds a new, independent index with the same pairs; two indexes
compare equal when they hold the same pairs in the same order. `repr()` shows
the pairs in key order.

### Ranges

`index.range(start, end, start_inclusive=True, end_inclusive=False)` yields
the entries whose keys lie between `start` and `end`, in ascending order.
Pass `None` for a side that has no bound; because of this, `None` itself
cannot serve as a bound. The inclusiveness flags choose whether each bound
itself is part of the range.

```python
index = TreeIndex()
for key in range(10):
    index.insert(key, key * key)

list(index.range(3, 6))                          # keys 3, 4, 5
list(index.range(3, 6, start_inclusive=False))   # keys 4, 5
list(index.range(3, 6, end_inclusive=True))      # keys 3, 4, 5, 6
list(index.range(None, 2))                       # keys 0, 1
```

### Asynchronous operations

`insert_async`, `remove_async` and `remove_if_async` yield to the event loop
once and then do the same work as their synchronous counterparts.

```python
import asyncio
from bptindex.tree_index import TreeIndex

async def main():
    index = TreeIndex()
    await index.insert_async("a", 1)
    assert await index.remove_async("a")
    assert not await index.remove_if_async("a", lambda value: True)

asyncio.run(main())
```

### Threads and iteration

A `TreeIndex` may be shared between threads: inserts, removals, reads,
`clear()` and `depth()` take an internal lock, so writes happen one at a time.
Scans (`iter()`, iterating the index directly, and `range()`) run without the
lock. A scan yields keys in strictly increasing order even while the index
changes underneath it, and every pair that exists for the whole scan is
visited; pairs added or removed during the scan may or may not be seen.

### Modules

- `bptindex.tree_index`: `TreeIndex` and `DuplicateKeyError`.
- `bptindex.iterators`: `Visitor`, the full ascending scan, and `Range`, the
  bounded scan, as returned by `TreeIndex.iter()` and `TreeIndex.range()`.
- `bptindex.nodes`: the tree's building blocks, `Leaf`, `InternalNode` and
  `Root`, together with the capacities `LEAF_CAPACITY` and `NODE_CAPACITY`.

## What it does not do

The index lives in memory only: there is no storage on disk, no
serialisation format and no command-line tool.