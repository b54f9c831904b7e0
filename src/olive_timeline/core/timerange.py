from typing import Iterable, Iterator, List, Optional, overload

from olive_timeline.core.errors import MalformedRange
from olive_timeline.core.rational import Rational, RationalLike


def _as_rational(value: RationalLike) -> Rational:
    if isinstance(value, Rational):
        return value
    return Rational(value)


class TimeRange:
    """Half-open interval ``[in, out)`` over rational time.

    An inverted range is rejected with ``MalformedRange`` rather than swapped,
    both on construction and through the setters. ``in == out`` is a legal,
    empty range.
    """

    __slots__ = ("_in", "_out", "_length")

    def __init__(self, in_point: RationalLike = 0, out_point: RationalLike = 0):
        self._in = _as_rational(in_point)
        self._out = _as_rational(out_point)
        self._normalize()

    def _normalize(self) -> None:
        if self._in > self._out:
            raise MalformedRange(f"Range in point {self._in} is after out point {self._out}")
        self._length = self._out - self._in

    @property
    def in_point(self) -> Rational:
        return self._in

    @property
    def out_point(self) -> Rational:
        return self._out

    @property
    def length(self) -> Rational:
        return self._length

    def is_empty(self) -> bool:
        return self._length.is_zero()

    def set_in(self, in_point: RationalLike) -> None:
        self.set_range(in_point, self._out)

    def set_out(self, out_point: RationalLike) -> None:
        self.set_range(self._in, out_point)

    def set_range(self, in_point: RationalLike, out_point: RationalLike) -> None:
        new_in = _as_rational(in_point)
        new_out = _as_rational(out_point)
        if new_in > new_out:
            raise MalformedRange(f"Range in point {new_in} is after out point {new_out}")
        self._in, self._out = new_in, new_out
        self._length = new_out - new_in

    def overlaps_with(
        self, other: "TimeRange", in_inclusive: bool = False, out_inclusive: bool = False
    ) -> bool:
        if self.is_empty() or other.is_empty():
            return False
        misses_in = other.out_point < self._in if in_inclusive else other.out_point <= self._in
        misses_out = other.in_point > self._out if out_inclusive else other.in_point >= self._out
        return not misses_in and not misses_out

    def combine_with(self, other: "TimeRange") -> "TimeRange":
        return TimeRange(min(self._in, other.in_point), max(self._out, other.out_point))

    def contains(self, other: "TimeRange", inout_inclusive: bool = True) -> bool:
        if inout_inclusive:
            return self._in <= other.in_point and other.out_point <= self._out
        return self._in < other.in_point and other.out_point < self._out

    def intersected(self, other: "TimeRange") -> Optional["TimeRange"]:
        if not self.overlaps_with(other):
            return None
        return TimeRange(max(self._in, other.in_point), min(self._out, other.out_point))

    @staticmethod
    def overlap(a: "TimeRange", b: "TimeRange") -> bool:
        return a.overlaps_with(b)

    @staticmethod
    def combine(a: "TimeRange", b: "TimeRange") -> "TimeRange":
        return a.combine_with(b)

    def __add__(self, offset: RationalLike) -> "TimeRange":
        return TimeRange(self._in + offset, self._out + offset)

    def __sub__(self, offset: RationalLike) -> "TimeRange":
        return TimeRange(self._in - offset, self._out - offset)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeRange):
            return NotImplemented
        return self._in == other.in_point and self._out == other.out_point

    def __hash__(self) -> int:
        return hash((self._in, self._out))

    def __repr__(self) -> str:
        return f"TimeRange({self._in}, {self._out})"


class TimeRangeList:
    """Sorted set of disjoint, non-touching, non-empty time ranges."""

    def __init__(self, ranges: Optional[Iterable[TimeRange]] = None):
        self._ranges: List[TimeRange] = []
        for time_range in ranges or ():
            self.insert_time_range(time_range)

    def insert_time_range(self, time_range: TimeRange) -> None:
        if time_range.is_empty():
            return
        merged = TimeRange(time_range.in_point, time_range.out_point)
        before: List[TimeRange] = []
        after: List[TimeRange] = []
        for existing in self._ranges:
            if existing.out_point < merged.in_point:
                before.append(existing)
            elif existing.in_point > merged.out_point:
                after.append(existing)
            else:
                # Overlapping or sharing a boundary.
                merged = merged.combine_with(existing)
        self._ranges = before + [merged] + after

    def remove_time_range(self, time_range: TimeRange) -> None:
        if time_range.is_empty():
            return
        remaining: List[TimeRange] = []
        for existing in self._ranges:
            if not existing.overlaps_with(time_range):
                remaining.append(existing)
                continue
            if existing.in_point < time_range.in_point:
                remaining.append(TimeRange(existing.in_point, time_range.in_point))
            if time_range.out_point < existing.out_point:
                remaining.append(TimeRange(time_range.out_point, existing.out_point))
        self._ranges = remaining

    def contains_time_range(self, time_range: TimeRange, inout_inclusive: bool = True) -> bool:
        if time_range.is_empty():
            return True
        return any(r.contains(time_range, inout_inclusive) for r in self._ranges)

    def intersects(self, time_range: TimeRange) -> "TimeRangeList":
        result = TimeRangeList()
        for existing in self._ranges:
            clipped = existing.intersected(time_range)
            if clipped is not None:
                result._ranges.append(clipped)
        return result

    def clear(self) -> None:
        self._ranges = []

    def total_length(self) -> Rational:
        total = Rational(0)
        for time_range in self._ranges:
            total = total + time_range.length
        return total

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[TimeRange]:
        return (TimeRange(r.in_point, r.out_point) for r in self._ranges)

    @overload
    def __getitem__(self, index: int) -> TimeRange: ...

    @overload
    def __getitem__(self, index: slice) -> List[TimeRange]: ...

    def __getitem__(self, index):
        # Entries are copied out so callers cannot break the ordering.
        if isinstance(index, slice):
            return [TimeRange(r.in_point, r.out_point) for r in self._ranges[index]]
        found = self._ranges[index]
        return TimeRange(found.in_point, found.out_point)

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TimeRangeList):
            return self._ranges == other._ranges
        if isinstance(other, list):
            return self._ranges == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"TimeRangeList({self._ranges!r})"
