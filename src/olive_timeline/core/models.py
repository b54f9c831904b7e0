import enum
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple

from olive_timeline.core.rational import Rational


class Interpolation(str, enum.Enum):
    LINEAR = "linear"
    HOLD = "hold"
    BEZIER = "bezier"


class ValueType(enum.Enum):
    """Parameter value types and the number of keyframe tracks each splits into."""

    FLOAT = ("float", 1, True, 0.0)
    INT = ("int", 1, True, 0)
    BOOLEAN = ("boolean", 1, False, False)
    RATIONAL = ("rational", 1, True, Rational(0))
    TEXT = ("text", 1, False, "")
    COMBO = ("combo", 1, False, 0)
    VEC2 = ("vec2", 2, True, 0.0)
    VEC3 = ("vec3", 3, True, 0.0)
    VEC4 = ("vec4", 4, True, 0.0)
    COLOR = ("color", 4, True, 0.0)
    # Point, then the two control handles, each as x/y.
    BEZIER = ("bezier", 6, True, 0.0)

    def __init__(self, label: str, track_count: int, interpolable: bool, component_default: Any):
        self.label = label
        self.track_count = track_count
        self.interpolable = interpolable
        self.component_default = component_default

    def split(self, value: Any) -> Tuple[Any, ...]:
        if self.track_count == 1:
            return (value,)
        components = tuple(value)
        if len(components) != self.track_count:
            raise ValueError(
                f"{self.label} value needs {self.track_count} components, got {len(components)}"
            )
        return components

    def combine(self, components: Tuple[Any, ...]) -> Any:
        if self.track_count == 1:
            return components[0]
        return tuple(components)

    def default(self) -> Any:
        return self.combine((self.component_default,) * self.track_count)


class InputFlag(enum.IntFlag):
    NONE = 0
    ARRAY = 1
    NOT_KEYFRAMABLE = 2
    NOT_CONNECTABLE = 4


@dataclass(frozen=True)
class BezierHandle:
    """Control handle offset relative to its keyframe."""

    time: Rational = field(default_factory=Rational)
    value: float = 0.0


@dataclass(frozen=True)
class Keyframe:
    time: Rational
    value: Any
    interpolation: Interpolation = Interpolation.LINEAR
    bezier_in: BezierHandle = field(default_factory=BezierHandle)
    bezier_out: BezierHandle = field(default_factory=BezierHandle)

    def with_time(self, time: Rational) -> "Keyframe":
        return replace(self, time=time)

    def with_value(self, value: Any) -> "Keyframe":
        return replace(self, value=value)


@dataclass(frozen=True)
class ElementKey:
    """Addresses an input, or one slot of an array input when ``element`` is set."""

    input: str
    element: Optional[int] = None

    @property
    def is_whole_input(self) -> bool:
        return self.element is None


@dataclass
class ValidationError:
    severity: str
    message: str
    element_type: Optional[str] = None
    element_id: Optional[str] = None
