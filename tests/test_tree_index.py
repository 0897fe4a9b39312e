import asyncio
import copy
import threading

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bptindex.tree_index import DuplicateKeyError, TreeIndex


def test_insert_duplicate_and_read():
    tree = TreeIndex()
    tree.insert(1, 10)
    with pytest.raises(DuplicateKeyError) as info:
        tree.insert(1, 11)
    assert (info.value.key, info.value.value) == (1, 11)
    assert tree.read(1, lambda k, v: v) == 10


def test_read_missing_returns_none():
    tree = TreeIndex()
    assert tree.read(1, lambda k, v: v) is None


def test_remove_and_remove_if():
    tree = TreeIndex()
    assert tree.remove(1) is False
    tree.insert(1, 10)
    assert tree.remove(1) is True
    tree.insert(1, 10)
    assert tree.remove_if(1, lambda v: v == 0) is False
    assert tree.remove_if(1, lambda v: v == 10) is True
    assert tree.read(1, lambda k, v: v) is None


def test_empty_tree_properties():
    tree = TreeIndex()
    assert len(tree) == 0
    assert tree.is_empty()
    assert tree.depth() == 0
    assert list(tree.iter()) == []
    assert list(tree.range(4, 8, end_inclusive=True)) == []


def test_clear():
    tree = TreeIndex()
    for k in range(1024):
        tree.insert(k, k)
    assert len(tree) == 1024
    tree.clear()
    assert len(tree) == 0
    assert tree.depth() == 0


def test_compare():
    tree1 = TreeIndex()
    tree2 = TreeIndex()
    assert tree1 == tree2
    tree1.insert("Hi", 1)
    assert tree1 != tree2
    tree2.insert("Hello", 2)
    assert tree1 != tree2
    tree1.insert("Hello", 2)
    assert tree1 != tree2
    tree2.insert("Hi", 1)
    assert tree1 == tree2
    assert tree1.remove("Hi")
    assert tree1 != tree2


def test_clone_is_independent():
    tree = TreeIndex()
    for k in range(1024):
        tree.insert(k, k)
    cloned = tree.copy()
    tree.clear()
    assert all(cloned.read(k, lambda _k, _v: True) for k in range(1024))
    assert len(tree) == 0
    assert copy.copy(cloned) == cloned


def test_repr_is_ordered():
    tree = TreeIndex()
    tree.insert(4, -4)
    tree.insert(2, -6)
    tree.insert(3, -5)
    assert repr(tree) == "TreeIndex({2: -6, 3: -5, 4: -4})"
    assert list(tree) == [(2, -6), (3, -5), (4, -4)]


@pytest.mark.parametrize("keys", [range(2000), range(1999, -1, -1)])
def test_bench_insert_iter_read(keys):
    tree = TreeIndex()
    for i in keys:
        tree.insert(i, i)
    entries = list(tree.iter())
    assert [k for k, _ in entries] == list(range(2000))
    assert all(k == v for k, v in entries)
    assert all(tree.read(i, lambda _k, v, i=i: v == i) for i in range(2000))
    assert tree.depth() > 1


def test_insert_remove_all():
    tree = TreeIndex()
    for k in range(1024):
        tree.insert(k, k)
    assert len(tree) == 1024
    for k in range(1024):
        assert tree.remove(k)
    assert len(tree) == 0
    assert tree.depth() == 0


def test_range_bounds():
    tree = TreeIndex()
    for k in range(100):
        tree.insert(k, k * 2)
    assert [k for k, _ in tree.range(10, 15)] == [10, 11, 12, 13, 14]
    assert [k for k, _ in tree.range(10, 15, end_inclusive=True)] == [10, 11, 12, 13, 14, 15]
    assert [k for k, _ in tree.range(10, 13, start_inclusive=False)] == [11, 12]
    assert [k for k, _ in tree.range(start=97)] == [97, 98, 99]
    assert [k for k, _ in tree.range(end=3)] == [0, 1, 2]


def test_complex_range_after_removal():
    range_size = 512
    tree = TreeIndex()
    for t in range(4):
        tree.insert(t * range_size, t * range_size)
    first_key = range_size
    for key in range(first_key + 1, first_key + range_size):
        tree.insert(key, key)
    scanner = tree.range(first_key)
    assert [next(scanner) for _ in range(4)] == [
        (first_key + i, first_key + i) for i in range(4)
    ]
    halfway = first_key + range_size // 2
    for key in range(first_key + 1, first_key + range_size):
        if key == halfway:
            scanner = tree.range(first_key + 1)
            assert next(scanner) == (halfway, halfway)
            assert next(scanner) == (halfway + 1, halfway + 1)
        assert tree.remove(key)
        assert not tree.remove(key)
        assert tree.read(key, lambda _k, _v: True) is None
    markers = [k for k, _ in tree.iter()]
    assert markers == [0, range_size, 2 * range_size, 3 * range_size]


def test_scanner_strictly_increasing_during_removal():
    tree = TreeIndex()
    for i in range(1000):
        tree.insert(i, 0)
    visitor = tree.iter()
    seen = [next(visitor)[0] for _ in range(10)]
    for i in range(500, 1000):
        tree.remove(i)
    seen.extend(k for k, _ in visitor)
    assert seen == list(range(500))


def test_basic_threads():
    size, threads = 512, 8
    tree = TreeIndex()
    barrier = threading.Barrier(threads)
    read_results = []
    lock = threading.Lock()

    def work(tid):
        first = tid * size
        barrier.wait()
        for key in range(first, first + size):
            tree.insert(key, key)
        results = [tree.read(key, lambda k, v: k == v) for key in range(first, first + size)]
        with lock:
            read_results.extend(results)

    workers = [threading.Thread(target=work, args=(t,)) for t in range(threads)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert len(read_results) == size * threads
    assert all(result is True for result in read_results)
    keys = [k for k, v in tree.iter()]
    assert keys == list(range(size * threads))


def test_remove_threads():
    threads = 4
    tree = TreeIndex()
    barrier = threading.Barrier(threads)
    results = []

    def work(tid):
        barrier.wait()
        for _ in range(100):
            inserted = 0
            for i in range(32):
                try:
                    tree.insert(i, tid)
                    inserted += 1
                except DuplicateKeyError:
                    pass
            found = sum(1 for i in range(32) if tree.read(i, lambda _k, v: v == tid))
            removed = sum(1 for i in range(32) if tree.remove_if(i, lambda v: v == tid))
            again = sum(1 for i in range(32) if tree.remove_if(i, lambda v: v == tid))
            results.append((inserted, found, removed, again))

    workers = [threading.Thread(target=work, args=(t,)) for t in range(threads)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert len(results) == threads * 100
    assert all(i == f == r and a == 0 for i, f, r, a in results)
    assert len(tree) == 0
    assert tree.depth() == 0


@pytest.mark.asyncio
async def test_integer_key_async():
    tree = TreeIndex()
    size = 128

    async def task(tid):
        keys = range(tid * size, (tid + 1) * size)
        for k in keys:
            await tree.insert_async(k, k)
            with pytest.raises(DuplicateKeyError):
                await tree.insert_async(k, k)
        assert all(tree.read(k, lambda _k, v: v) == k for k in keys)
        assert all([await tree.remove_if_async(k, lambda v, k=k: v == k) for k in keys])
        assert not any([await tree.remove_if_async(k, lambda v, k=k: v == k) for k in keys])

    await asyncio.gather(*(task(t) for t in range(8)))
    assert len(tree) == 0


@pytest.mark.asyncio
async def test_insert_remove_async():
    tree = TreeIndex()
    for k in range(1024):
        await tree.insert_async(k, str(k))
    assert len(tree) == 1024
    for k in range(1024):
        assert await tree.remove_async(k)
    assert len(tree) == 0


@settings(max_examples=30, deadline=None)
@given(st.lists(st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=16)))
def test_string_key(words):
    tree1 = TreeIndex()
    tree2 = TreeIndex()
    checker1 = {}
    for i, word in enumerate(words):
        try:
            tree1.insert(word, i)
            checker1[word] = i
        except DuplicateKeyError:
            pass
        assert tree1.read(word, lambda _k, _v: True)
        tree2.insert(i, word)
    for word, i in checker1.items():
        assert tree1.read(word, lambda _k, v: v) == i
    for i, word in enumerate(words):
        assert tree2.read(i, lambda _k, v: v) == word
    assert [k for k, _ in tree1] == sorted(checker1)