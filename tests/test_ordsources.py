"""
Tests for ordsources: feeding sortedcontainers, pair lists, dense vectors and
bitmasks into the joins, and collecting join results back out.
"""

import logging
from operator import neg

import pytest
from sortedcontainers import SortedDict, SortedKeyList, SortedList, SortedSet

from ordjoin import OrderedMap, OrderedSet
from ordsources import (
    bits,
    dense,
    ordered,
    pairs,
    sorted_items,
    sorted_keys,
    sorted_set,
    to_sorted_dict,
    to_sorted_set,
)


class TestSortedContainers:
    def test_sorted_set(self):
        s = SortedSet([5, 1, 3])
        it = sorted_set(s)
        assert isinstance(it, OrderedSet)
        assert list(it) == [1, 3, 5]

    def test_sorted_list(self):
        assert list(sorted_set(SortedList([4, 2, 8]))) == [2, 4, 8]

    def test_sorted_set_bounds_are_inclusive(self, caplog):
        caplog.set_level(logging.DEBUG, logger="ordsources")
        s = SortedSet(range(10))
        assert list(sorted_set(s, minimum=3, maximum=6)) == [3, 4, 5, 6]
        assert list(sorted_set(s, minimum=8)) == [8, 9]
        assert "Iterating SortedSet from 3 to 6" in caplog.text

    def test_sorted_items_and_keys(self):
        d = SortedDict({"b": 2, "a": 1, "c": 3})
        items = sorted_items(d)
        assert isinstance(items, OrderedMap)
        assert list(items) == [("a", 1), ("b", 2), ("c", 3)]
        assert list(sorted_keys(d)) == ["a", "b", "c"]

    def test_sorted_items_bounded(self):
        d = SortedDict((k, k * k) for k in range(10))
        assert list(sorted_items(d, maximum=2)) == [(0, 0), (1, 1), (2, 4)]
        assert list(sorted_keys(d, minimum=7)) == [7, 8, 9]

    def test_keyed_containers_are_rejected(self):
        with pytest.raises(ValueError, match="key="):
            sorted_set(SortedSet([1, 2], key=neg))
        with pytest.raises(ValueError):
            sorted_set(SortedKeyList([1, 2], key=neg))
        with pytest.raises(ValueError):
            sorted_items(SortedDict(neg, {1: 1}))

    @pytest.mark.parametrize("container", [{1, 2}, [1, 2], frozenset()])
    def test_unsorted_containers_are_rejected(self, container):
        with pytest.raises(TypeError):
            sorted_set(container)

    def test_plain_dict_is_rejected(self):
        with pytest.raises(TypeError, match="expected SortedDict"):
            sorted_items({1: 1})

    def test_join_sorted_containers(self):
        evens = SortedSet(range(0, 30, 2))
        squares = SortedDict((k * k, k) for k in range(6))
        assert list(sorted_set(evens).inner_join_map(sorted_items(squares))) == [
            (0, 0), (4, 2), (16, 4),
        ]


class TestPairs:
    ELEMS = [(1, "one"), (2, "two"), (3, "three"), (4, "four"), (5, "five")]

    def test_all(self):
        assert list(pairs(self.ELEMS)) == self.ELEMS

    def test_bounds(self):
        assert list(pairs(self.ELEMS, minimum=2, maximum=4)) == self.ELEMS[1:4]
        assert list(pairs(self.ELEMS, minimum=6)) == []
        assert list(pairs(self.ELEMS, maximum=0)) == []

    def test_empty(self):
        assert list(pairs([], minimum=1)) == []


class TestDense:
    def test_holes_are_skipped(self):
        assert list(dense(["a", None, "c", None])) == [(0, "a"), (2, "c")]

    def test_joins_with_a_sorted_dict(self):
        names = SortedDict({0: "zero", 2: "two", 3: "three"})
        joined = dense([10, 11, None, 13]).inner_join_map(sorted_items(names))
        assert list(joined) == [(0, (10, "zero")), (3, (13, "three"))]


class TestBits:
    @pytest.mark.parametrize("n, expected", [
        (0, []),
        (1, [0]),
        (0b1011, [0, 1, 3]),
        (1 << 100, [100]),
    ])
    def test_set_bits(self, n, expected):
        assert list(bits(n)) == expected

    def test_negative(self):
        with pytest.raises(ValueError, match="non-negative"):
            bits(-1)

    def test_bitset_intersection(self):
        assert list(bits(0b1110).inner_join_set(bits(0b0111))) == [1, 2]


class TestOrdered:
    def test_dispatch(self):
        assert list(ordered(SortedDict({1: "a"}))) == [(1, "a")]
        assert list(ordered(SortedSet([2, 1]))) == [1, 2]
        assert list(ordered(SortedList([2, 1]))) == [1, 2]
        assert list(ordered(0b101)) == [0, 2]

    def test_ordered_iterators_pass_through(self):
        it = sorted_set(SortedSet([1]))
        assert ordered(it) is it

    @pytest.mark.parametrize("container", [{1: 1}, {1}, "abc", 1.5])
    def test_unrecognized(self, container):
        with pytest.raises(TypeError, match="Unrecognized container"):
            ordered(container)


class TestCollect:
    def test_to_sorted_dict(self):
        joined = ordered(SortedDict({1: "a", 2: "b"})).outer_join([(2, "B"), (3, "C")])
        assert to_sorted_dict(joined) == SortedDict({
            1: ("a", None), 2: ("b", "B"), 3: (None, "C"),
        })

    def test_to_sorted_set_from_map_takes_keys(self):
        joined = ordered(SortedDict({1: "a", 2: "b"})).inner_join_map([(2, "B")])
        assert to_sorted_set(joined) == SortedSet([2])

    def test_round_trip_through_containers(self):
        a = SortedSet(range(0, 50, 2))
        b = SortedSet(range(0, 50, 3))
        first = to_sorted_set(ordered(a).inner_join_set(ordered(b)))
        again = list(ordered(first).inner_join_set(range(0, 50, 4)))
        assert again == [0, 12, 24, 36, 48]
