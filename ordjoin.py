import functools
import logging
from collections.abc import Mapping
from typing import Generic, TypeVar

log = logging.getLogger(__name__)

K = TypeVar('K')
V = TypeVar('V')

# Raised when a join's own bookkeeping contradicts itself. Never a caller error.
class JoinInvariantError(RuntimeError): pass

_marker = object()


# ----- ORDERED ITERATORS -----
# Shared state machine: Ready until pull() raises StopIteration, then Exhausted
# for good. Subclasses implement pull(), which returns the next element or
# raises StopIteration.
class Ordered:
    finished = False
    produced = 0

    def pull(self): raise NotImplementedError
    def done(self) -> bool: return self.finished

    # Implement Python iterator/iterable interface.
    def __iter__(self): return self
    def __next__(self):
        if self.finished: raise StopIteration
        try:
            elem = self.pull()
        except StopIteration:
            self.finished = True
            log.debug("%s exhausted after %d elements",
                      type(self).__name__, self.produced)
            raise
        self.produced += 1
        return elem

    def debug_dump(self, name=None, file=None):
        header = f"{name} " if name is not None else ""
        state = "DONE" if self.finished else f"ready, {self.produced} produced"
        print(f"{header}{type(self).__name__}: {state}", file=file)

# Produces strictly increasing keys. The caller guarantees this; we never check.
class OrderedSet(Ordered, Generic[K]):
    def inner_join_set(self, other) -> 'InnerJoinSet':
        return InnerJoinSet(self, as_set(other))

    def inner_join_map(self, other) -> 'InnerJoinMapSet':
        return InnerJoinMapSet(as_map(other), self)

# Produces (key, value) pairs with strictly increasing keys.
class OrderedMap(Ordered, Generic[K, V]):
    def inner_join_map(self, other) -> 'InnerJoinMap':
        return InnerJoinMap(self, as_map(other))

    def inner_join_set(self, other) -> 'InnerJoinMapSet':
        return InnerJoinMapSet(self, as_set(other))

    def outer_join(self, right, default=None) -> 'OuterJoin':
        """Join with `right`, yielding every key found in either side.

        Each key maps to a pair (left value, right value); the side that lacks
        the key contributes `default` instead. Pick a sentinel for `default` if
        None is a meaningful value in your maps.
        """
        return OuterJoin(self, as_map(right), default=default)

    # Not keys(): dict() would take that as a sign we are a mapping.
    def key_set(self) -> 'Keys': return Keys(self)
    def map_values(self, f) -> 'MapValues': return MapValues(self, f)

# Wraps a Python iterable the caller vouches is sorted.
class SetIter(OrderedSet):
    def __init__(self, iterable):
        self.iter = iter(iterable)
    def pull(self): return next(self.iter)
    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        print(f"    over {self.iter!r}", file=file)

class MapIter(OrderedMap):
    def __init__(self, iterable):
        self.iter = iter(iterable)
    def pull(self):
        key, value = next(self.iter)
        return key, value
    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        print(f"    over {self.iter!r}", file=file)

def as_set(x) -> OrderedSet:
    if isinstance(x, OrderedSet): return x
    if isinstance(x, OrderedMap):
        raise TypeError(f"expected an ordered set, got ordered map {type(x).__name__}")
    return SetIter(x)

def as_map(x) -> OrderedMap:
    if isinstance(x, OrderedMap): return x
    if isinstance(x, OrderedSet):
        raise TypeError(f"expected an ordered map, got ordered set {type(x).__name__}")
    if isinstance(x, Mapping): return MapIter(x.items())
    return MapIter(x)

# Views of a map that keep it ordered.
class Keys(OrderedSet):
    def __init__(self, map: OrderedMap):
        self.map = map
    def pull(self): return next(self.map)[0]
    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        self.map.debug_dump("  keys of", file=file)

class MapValues(OrderedMap):
    def __init__(self, map: OrderedMap, f):
        self.map = map
        self.f = f
    def pull(self):
        key, value = next(self.map)
        return key, self.f(value)
    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        self.map.debug_dump("  values of", file=file)


# One-element lookahead. Never re-fetches a peeked element and never pulls the
# wrapped iterator again once it has ended.
class Peekable:
    def __init__(self, iterable):
        self.iter = iter(iterable)
        self.head = _marker
        self.ended = False

    def __iter__(self): return self
    def __next__(self):
        if self.head is not _marker:
            elem, self.head = self.head, _marker
            return elem
        if self.ended: raise StopIteration
        try:
            return next(self.iter)
        except StopIteration:
            self.ended = True
            raise

    # Describes the buffered head without pulling anything.
    def state(self):
        if self.head is not _marker: return f"head {self.head!r}"
        return "DONE" if self.ended else "not peeked"

    def peek(self, default=_marker):
        if self.head is _marker and not self.ended:
            try:
                self.head = next(self.iter)
            except StopIteration:
                self.ended = True
        if self.head is _marker:
            if default is _marker: raise StopIteration
            return default
        return self.head

# Consumes the element `peekable` just reported.
def take(peekable: Peekable):
    try:
        return next(peekable)
    except StopIteration:
        raise JoinInvariantError("peek found a value but next() did not") from None


# ----- PAIRWISE JOINS -----
# Each join owns its inputs outright: nothing else may advance them once the
# join exists.

# Inner join of two ordered maps; values are paired up.
class InnerJoinMap(OrderedMap):
    def __init__(self, a: OrderedMap, b: OrderedMap):
        self.a = a
        self.b = b

    # A StopIteration from either side ends the join: keys only increase, so
    # nothing left in the other side can match.
    def pull(self):
        key_a, val_a = next(self.a)
        key_b, val_b = next(self.b)
        while True:
            if key_a < key_b:
                key_a, val_a = next(self.a)
            elif key_b < key_a:
                key_b, val_b = next(self.b)
            else:
                return key_a, (val_a, val_b)

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        self.a.debug_dump("  A", file=file)
        self.b.debug_dump("  B", file=file)

# Inner join of two ordered sets.
class InnerJoinSet(OrderedSet):
    def __init__(self, a: OrderedSet, b: OrderedSet):
        self.a = a
        self.b = b

    def pull(self):
        key_a = next(self.a)
        key_b = next(self.b)
        while True:
            if key_a < key_b:
                key_a = next(self.a)
            elif key_b < key_a:
                key_b = next(self.b)
            else:
                return key_a

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        self.a.debug_dump("  A", file=file)
        self.b.debug_dump("  B", file=file)

# Filters an ordered map down to the keys of an ordered set.
class InnerJoinMapSet(OrderedMap):
    def __init__(self, map: OrderedMap, set: OrderedSet):
        self.map = map
        self.set = set

    def pull(self):
        key_set = next(self.set)
        key_map, value = next(self.map)
        while True:
            if key_set < key_map:
                key_set = next(self.set)
            elif key_map < key_set:
                key_map, value = next(self.map)
            else:
                return key_set, value

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        self.map.debug_dump("  map", file=file)
        self.set.debug_dump("  set", file=file)

# Outer join of two ordered maps. Unlike the inner joins this only ends once
# *both* sides are exhausted, so it must look before it consumes.
class OuterJoin(OrderedMap):
    def __init__(self, left: OrderedMap, right: OrderedMap, default=None):
        self.left = Peekable(left)
        self.right = Peekable(right)
        self.default = default

    def pull(self):
        left = self.left.peek(None)
        right = self.right.peek(None)
        if left is None and right is None:
            raise StopIteration
        if right is None or (left is not None and left[0] < right[0]):
            key, value = take(self.left)
            return key, (value, self.default)
        if left is None or right[0] < left[0]:
            key, value = take(self.right)
            return key, (self.default, value)
        key, a = take(self.left)
        _, b = take(self.right)
        return key, (a, b)

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        for label, side in (("  left", self.left), ("  right", self.right)):
            print(f"{label} {side.state()}", file=file)


# ----- N-WAY JOINS -----
def intersect_all(*sets) -> OrderedSet:
    if not sets: raise ValueError("intersect_all needs at least one ordered set")
    return functools.reduce(lambda a, b: a.inner_join_set(b),
                            sets[1:], as_set(sets[0]))

# Leapfrog intersection of ordered maps; yields (key, (v1, ..., vn)).
class Leapfrog(OrderedMap):
    def __init__(self, *maps):
        if not maps: raise ValueError("Leapfrog needs at least one ordered map")
        self.iters = [as_map(m) for m in maps]

    # Rotate through the inputs, moving each up to the highest key seen so far.
    # Once every input in a row sits at that key, it's a match. A match
    # consumes every input's current element.
    def pull(self):
        n = len(self.iters)
        heads = [next(it) for it in self.iters]
        hi = heads[-1][0]
        idx = 0
        agree = 0
        while agree < n:
            key = heads[idx][0]
            while key < hi:
                heads[idx] = next(self.iters[idx])
                key = heads[idx][0]
            if hi < key:
                hi = key
                agree = 1
            else:
                agree += 1
            idx = (idx + 1) % n
        assert not any(hi < key or key < hi for key, _ in heads)
        return hi, tuple(value for _, value in heads)

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        for i, it in enumerate(self.iters):
            it.debug_dump(f"  #{i}", file=file)

def inner_join_all(*maps) -> Leapfrog: return Leapfrog(*maps)

# Outer join of any number of ordered maps; yields (key, (v1, ..., vn)) with
# `default` standing in for inputs that lack the key.
class OuterJoinAll(OrderedMap):
    def __init__(self, *maps, default=None):
        if not maps: raise ValueError("OuterJoinAll needs at least one ordered map")
        self.iters = [Peekable(as_map(m)) for m in maps]
        self.default = default

    def pull(self):
        heads = [it.peek(None) for it in self.iters]
        live = [h[0] for h in heads if h is not None]
        if not live: raise StopIteration
        lo = min(live)
        values = []
        for it, head in zip(self.iters, heads):
            if head is None or lo < head[0]:
                values.append(self.default)
            else:
                values.append(take(it)[1])
        return lo, tuple(values)

    def debug_dump(self, name=None, file=None):
        super().debug_dump(name, file)
        for i, it in enumerate(self.iters):
            print(f"  #{i} {it.state()}", file=file)

def outer_join_all(*maps, default=None) -> OuterJoinAll:
    return OuterJoinAll(*maps, default=default)
