import bisect
import logging

from sortedcontainers import SortedDict, SortedList, SortedSet

import ordjoin

log = logging.getLogger(__name__)

# Adapters from concrete sorted containers into ordered iterators, and back.
#
# Everything here trusts its input to already be in increasing key order. We
# only refuse containers whose order we *know* isn't the natural one: plain
# dicts and sets, and sortedcontainers built with a key= function (those sort
# by key(x), but the joins compare x itself).

def _check(container, *types):
    if not isinstance(container, types):
        names = ' or '.join(t.__name__ for t in types)
        raise TypeError(f"expected {names}, got {type(container).__name__}")
    if container.key is not None:
        raise ValueError(
            f"{type(container).__name__} sorted by key={container.key!r} "
            "can't be joined in natural order")

def _bounded(minimum, maximum):
    return minimum is not None or maximum is not None

# SortedSet or SortedList -> OrderedSet. Bounds are inclusive.
def sorted_set(container, minimum=None, maximum=None) -> ordjoin.SetIter:
    _check(container, SortedSet, SortedList)
    if _bounded(minimum, maximum):
        log.debug("Iterating %s from %r to %r",
                  type(container).__name__, minimum, maximum)
        return ordjoin.SetIter(container.irange(minimum, maximum))
    return ordjoin.SetIter(container)

# SortedDict -> OrderedSet of its keys.
def sorted_keys(d, minimum=None, maximum=None) -> ordjoin.SetIter:
    _check(d, SortedDict)
    if _bounded(minimum, maximum):
        log.debug("Iterating keys of SortedDict from %r to %r", minimum, maximum)
        return ordjoin.SetIter(d.irange(minimum, maximum))
    return ordjoin.SetIter(d.keys())

# SortedDict -> OrderedMap of its items.
def sorted_items(d, minimum=None, maximum=None) -> ordjoin.MapIter:
    _check(d, SortedDict)
    if _bounded(minimum, maximum):
        log.debug("Iterating items of SortedDict from %r to %r", minimum, maximum)
        return ordjoin.MapIter((k, d[k]) for k in d.irange(minimum, maximum))
    return ordjoin.MapIter(d.items())

# A list of (key, value) tuples, sorted by key -> OrderedMap. Bounds are
# inclusive and found by bisection, so skipping a prefix costs O(log n).
def pairs(elems: list, minimum=None, maximum=None) -> ordjoin.MapIter:
    start, end = 0, len(elems)
    if minimum is not None:
        start = bisect.bisect_left(elems, minimum, key=lambda x: x[0])
    if maximum is not None:
        end = bisect.bisect_right(elems, maximum, start, end, key=lambda x: x[0])
    return ordjoin.MapIter(elems[i] for i in range(start, end))

# A list indexed by position -> OrderedMap from index to value. Slots holding
# None are holes and are skipped.
def dense(seq) -> ordjoin.MapIter:
    return ordjoin.MapIter((i, x) for i, x in enumerate(seq) if x is not None)

# A bitmask -> OrderedSet of the positions of its set bits, lowest first.
def bits(n: int) -> ordjoin.SetIter:
    if n < 0: raise ValueError(f"bitmask must be non-negative, got {n}")
    def set_bits(n):
        while n:
            low = n & -n
            yield low.bit_length() - 1
            n ^= low
    return ordjoin.SetIter(set_bits(n))

# Picks the adapter for a container.
def ordered(container):
    match container:
        case ordjoin.Ordered():
            return container
        case SortedDict():
            return sorted_items(container)
        case SortedSet() | SortedList():
            return sorted_set(container)
        case int():
            return bits(container)
        case _:
            raise TypeError(f"Unrecognized container {type(container).__name__}")


# ----- COLLECTING RESULTS -----
def to_sorted_dict(it) -> SortedDict:
    return SortedDict(ordjoin.as_map(it))

def to_sorted_set(it) -> SortedSet:
    if isinstance(it, ordjoin.OrderedMap):
        it = it.key_set()
    return SortedSet(it)
