import math
from fractions import Fraction
from typing import Tuple, Union

from olive_timeline.core.errors import InvalidRational

RationalLike = Union["Rational", int]


class Rational:
    """Exact signed fraction used for every time coordinate.

    Always stored reduced with a positive denominator, so equality and
    ordering are plain integer comparisons. Floats never enter arithmetic;
    ``to_double()`` exists for display only.
    """

    __slots__ = ("_num", "_den")

    def __init__(self, numerator: int = 0, denominator: int = 1):
        if isinstance(numerator, bool) or not isinstance(numerator, int):
            raise TypeError(f"numerator must be int, got {type(numerator).__name__}")
        if isinstance(denominator, bool) or not isinstance(denominator, int):
            raise TypeError(f"denominator must be int, got {type(denominator).__name__}")
        if denominator == 0:
            raise InvalidRational(f"Zero denominator in {numerator}/0")
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        divisor = math.gcd(numerator, denominator)
        self._num = numerator // divisor
        self._den = denominator // divisor

    @classmethod
    def from_string(cls, text: str) -> "Rational":
        raw = text.strip()
        if "/" in raw:
            num, den = raw.split("/", 1)
            try:
                return cls(int(num), int(den))
            except ValueError:
                raise ValueError(f"Invalid rational string: {text!r}") from None
        try:
            return cls(int(raw))
        except ValueError:
            raise ValueError(f"Invalid rational string: {text!r}") from None

    @classmethod
    def from_float(cls, value: float, max_denominator: int = 1000000) -> "Rational":
        if not math.isfinite(value):
            raise InvalidRational(f"Cannot represent {value} as a rational")
        approx = Fraction(value).limit_denominator(max_denominator)
        return cls(approx.numerator, approx.denominator)

    @property
    def numerator(self) -> int:
        return self._num

    @property
    def denominator(self) -> int:
        return self._den

    def as_tuple(self) -> Tuple[int, int]:
        return self._num, self._den

    def to_double(self) -> float:
        return self._num / self._den

    def flipped(self) -> "Rational":
        return Rational(self._den, self._num)

    def is_zero(self) -> bool:
        return self._num == 0

    @staticmethod
    def _coerce(other: object) -> "Rational":
        if isinstance(other, Rational):
            return other
        if isinstance(other, int) and not isinstance(other, bool):
            return Rational(other)
        return NotImplemented

    def __add__(self, other: RationalLike) -> "Rational":
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return Rational(self._num * rhs._den + rhs._num * self._den, self._den * rhs._den)

    __radd__ = __add__

    def __sub__(self, other: RationalLike) -> "Rational":
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return Rational(self._num * rhs._den - rhs._num * self._den, self._den * rhs._den)

    def __rsub__(self, other: RationalLike) -> "Rational":
        lhs = self._coerce(other)
        if lhs is NotImplemented:
            return NotImplemented
        return lhs - self

    def __mul__(self, other: RationalLike) -> "Rational":
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return Rational(self._num * rhs._num, self._den * rhs._den)

    __rmul__ = __mul__

    def __truediv__(self, other: RationalLike) -> "Rational":
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        if rhs._num == 0:
            raise InvalidRational(f"Division of {self} by zero")
        return Rational(self._num * rhs._den, self._den * rhs._num)

    def __rtruediv__(self, other: RationalLike) -> "Rational":
        lhs = self._coerce(other)
        if lhs is NotImplemented:
            return NotImplemented
        return lhs / self

    def __neg__(self) -> "Rational":
        return Rational(-self._num, self._den)

    def __pos__(self) -> "Rational":
        return self

    def __abs__(self) -> "Rational":
        return Rational(abs(self._num), self._den)

    def _compare(self, other: object):
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return self._num * rhs._den - rhs._num * self._den

    def __eq__(self, other: object) -> bool:
        diff = self._compare(other)
        if diff is NotImplemented:
            return NotImplemented
        return diff == 0

    def __lt__(self, other: RationalLike) -> bool:
        diff = self._compare(other)
        if diff is NotImplemented:
            return NotImplemented
        return diff < 0

    def __le__(self, other: RationalLike) -> bool:
        diff = self._compare(other)
        if diff is NotImplemented:
            return NotImplemented
        return diff <= 0

    def __gt__(self, other: RationalLike) -> bool:
        diff = self._compare(other)
        if diff is NotImplemented:
            return NotImplemented
        return diff > 0

    def __ge__(self, other: RationalLike) -> bool:
        diff = self._compare(other)
        if diff is NotImplemented:
            return NotImplemented
        return diff >= 0

    def __hash__(self) -> int:
        # Integral rationals hash like the int they equal.
        if self._den == 1:
            return hash(self._num)
        return hash((self._num, self._den))

    def __bool__(self) -> bool:
        return self._num != 0

    def __float__(self) -> float:
        return self.to_double()

    def __int__(self) -> int:
        truncated = abs(self._num) // self._den
        return truncated if self._num >= 0 else -truncated

    def __floor__(self) -> int:
        return self._num // self._den

    def __ceil__(self) -> int:
        return -(-self._num // self._den)

    def __round__(self, ndigits=None):
        rounded = round(Fraction(self._num, self._den), ndigits)
        if ndigits is None:
            return rounded
        return Rational(rounded.numerator, rounded.denominator)

    def __str__(self) -> str:
        if self._den == 1:
            return str(self._num)
        return f"{self._num}/{self._den}"

    def __repr__(self) -> str:
        return f"Rational({self._num}, {self._den})"
