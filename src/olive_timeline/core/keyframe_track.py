import bisect
import math
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from olive_timeline.core.errors import KeyframeNotFound
from olive_timeline.core.models import BezierHandle, Interpolation, Keyframe, ValueType
from olive_timeline.core.rational import Rational, RationalLike

_BISECTION_STEPS = 64


def _time_of(keyframe: Keyframe) -> Rational:
    return keyframe.time


def _is_exact(value: Any) -> bool:
    return isinstance(value, (int, Rational)) and not isinstance(value, bool)


def _round_half_away(value: Any) -> int:
    """Round to the nearest int, halves away from zero."""
    if isinstance(value, int):
        return value
    if isinstance(value, Rational):
        magnitude = (2 * abs(value.numerator) + value.denominator) // (2 * value.denominator)
        return magnitude if value.numerator >= 0 else -magnitude
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _lerp(a: Any, b: Any, fraction: Rational) -> Any:
    if _is_exact(a) and _is_exact(b):
        return a + (b - a) * fraction
    return float(a) + (float(b) - float(a)) * fraction.to_double()


def _solve_for_t(x: float, curve) -> float:
    # x(t) is monotonic once handles are clamped to the segment.
    low, high = 0.0, 1.0
    for _ in range(_BISECTION_STEPS):
        mid = (low + high) / 2
        if curve(mid) < x:
            low = mid
        else:
            high = mid
    return (low + high) / 2


def _cubic(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    inv = 1.0 - t
    return inv ** 3 * p0 + 3 * inv ** 2 * t * p1 + 3 * inv * t ** 2 * p2 + t ** 3 * p3


def _quadratic(p0: float, p1: float, p2: float, t: float) -> float:
    inv = 1.0 - t
    return inv ** 2 * p0 + 2 * inv * t * p1 + t ** 2 * p2


class KeyframeTrack:
    """Time-ordered keyframes for one scalar component of a parameter.

    The keyframes live in a tuple that is replaced wholesale on every
    mutation, so a reader holding ``keyframes`` always sees a consistent
    sequence.
    """

    def __init__(self, value_type: ValueType = ValueType.FLOAT, keyframes: Iterable[Keyframe] = ()):
        self.value_type = value_type
        self._keys: Tuple[Keyframe, ...] = ()
        for keyframe in keyframes:
            self.insert(keyframe)

    @property
    def keyframes(self) -> Tuple[Keyframe, ...]:
        return self._keys

    def first(self) -> Optional[Keyframe]:
        return self._keys[0] if self._keys else None

    def last(self) -> Optional[Keyframe]:
        return self._keys[-1] if self._keys else None

    def keyframe_at(self, time: RationalLike) -> Optional[Keyframe]:
        keys = self._keys
        idx = bisect.bisect_left(keys, time, key=_time_of)
        if idx < len(keys) and keys[idx].time == time:
            return keys[idx]
        return None

    def insert(self, keyframe: Keyframe) -> Optional[Keyframe]:
        """Insert ``keyframe`` in time order.

        A keyframe already at the same time is replaced, not duplicated, and
        the replaced record is returned so an undo can put it back.
        """
        keys = self._keys
        idx = bisect.bisect_left(keys, keyframe.time, key=_time_of)
        if idx < len(keys) and keys[idx].time == keyframe.time:
            replaced = keys[idx]
            self._keys = keys[:idx] + (keyframe,) + keys[idx + 1:]
            return replaced
        self._keys = keys[:idx] + (keyframe,) + keys[idx:]
        return None

    def insert_keyframe(
        self,
        time: RationalLike,
        value: Any,
        interpolation: Interpolation = Interpolation.LINEAR,
        bezier_in: Optional[BezierHandle] = None,
        bezier_out: Optional[BezierHandle] = None,
    ) -> Optional[Keyframe]:
        keyframe = Keyframe(
            time=time if isinstance(time, Rational) else Rational(time),
            value=value,
            interpolation=interpolation,
            bezier_in=bezier_in or BezierHandle(),
            bezier_out=bezier_out or BezierHandle(),
        )
        return self.insert(keyframe)

    def remove_keyframe(self, keyframe: Union[Keyframe, RationalLike]) -> Keyframe:
        time = keyframe.time if isinstance(keyframe, Keyframe) else keyframe
        keys = self._keys
        idx = bisect.bisect_left(keys, time, key=_time_of)
        if idx >= len(keys) or keys[idx].time != time:
            raise KeyframeNotFound(f"No keyframe at time {time}")
        removed = keys[idx]
        self._keys = keys[:idx] + keys[idx + 1:]
        return removed

    def edit(
        self, remove: Iterable[RationalLike] = (), insert: Iterable[Keyframe] = ()
    ) -> Tuple[Tuple[Keyframe, ...], Tuple[Keyframe, ...]]:
        """Remove keys at ``remove`` times, then insert ``insert``, as one change.

        Returns ``(removed, replaced)``: the keys taken out by time, and the
        keys overwritten because an inserted key landed on their time. Nothing
        changes if any removal time has no key.
        """
        keys = list(self._keys)
        removed: List[Keyframe] = []
        for time in remove:
            idx = bisect.bisect_left(keys, time, key=_time_of)
            if idx >= len(keys) or keys[idx].time != time:
                raise KeyframeNotFound(f"No keyframe at time {time}")
            removed.append(keys.pop(idx))
        replaced: List[Keyframe] = []
        for keyframe in insert:
            idx = bisect.bisect_left(keys, keyframe.time, key=_time_of)
            if idx < len(keys) and keys[idx].time == keyframe.time:
                replaced.append(keys[idx])
                keys[idx] = keyframe
            else:
                keys.insert(idx, keyframe)
        self._keys = tuple(keys)
        return tuple(removed), tuple(replaced)

    def clear(self) -> Tuple[Keyframe, ...]:
        removed, self._keys = self._keys, ()
        return removed

    def value_at(self, time: RationalLike, fallback: Any = None) -> Any:
        keys = self._keys
        if not keys:
            return fallback

        if time <= keys[0].time:
            return keys[0].value
        if time >= keys[-1].time:
            return keys[-1].value

        idx = bisect.bisect_left(keys, time, key=_time_of)
        if keys[idx].time == time:
            return keys[idx].value
        before, after = keys[idx - 1], keys[idx]
        return self._interpolate(before, after, time if isinstance(time, Rational) else Rational(time))

    def _interpolate(self, before: Keyframe, after: Keyframe, time: Rational) -> Any:
        if not self.value_type.interpolable or before.interpolation == Interpolation.HOLD:
            return before.value

        before_bezier = before.interpolation == Interpolation.BEZIER
        after_bezier = after.interpolation == Interpolation.BEZIER
        if before_bezier or after_bezier:
            result = self._bezier(before, after, time, before_bezier, after_bezier)
            if self.value_type == ValueType.RATIONAL:
                return Rational.from_float(result)
        else:
            fraction = (time - before.time) / (after.time - before.time)
            result = _lerp(before.value, after.value, fraction)

        if self.value_type == ValueType.INT:
            return _round_half_away(result)
        return result

    @staticmethod
    def _bezier(
        before: Keyframe, after: Keyframe, time: Rational, use_out: bool, use_in: bool
    ) -> float:
        start_x = before.time.to_double()
        end_x = after.time.to_double()
        span = end_x - start_x
        start_y = float(before.value)
        end_y = float(after.value)
        # Handle time offsets may not reach past the neighbouring key.
        out_x = start_x + min(max(before.bezier_out.time.to_double(), 0.0), span)
        out_y = start_y + float(before.bezier_out.value)
        in_x = end_x + max(min(after.bezier_in.time.to_double(), 0.0), -span)
        in_y = end_y + float(after.bezier_in.value)
        x = time.to_double()

        if use_out and use_in:
            t = _solve_for_t(x, lambda s: _cubic(start_x, out_x, in_x, end_x, s))
            return _cubic(start_y, out_y, in_y, end_y, t)

        control_x, control_y = (out_x, out_y) if use_out else (in_x, in_y)
        t = _solve_for_t(x, lambda s: _quadratic(start_x, control_x, end_x, s))
        return _quadratic(start_y, control_y, end_y, t)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyframeTrack):
            return NotImplemented
        return self.value_type == other.value_type and self._keys == other._keys

    def __repr__(self) -> str:
        return f"KeyframeTrack({self.value_type.label}, {list(self._keys)!r})"
