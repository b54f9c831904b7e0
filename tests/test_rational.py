import math

import pytest

from olive_timeline.core.errors import InvalidRational
from olive_timeline.core.rational import Rational


# ---------------------------------------------------------------------------
# Construction and normalisation
# ---------------------------------------------------------------------------


class TestRationalConstruction:
    def test_default_is_zero(self):
        r = Rational()
        assert r.is_zero()
        assert r.as_tuple() == (0, 1)

    def test_reduced_on_construction(self):
        r = Rational(6, 8)
        assert r.numerator == 3
        assert r.denominator == 4

    def test_sign_moves_to_numerator(self):
        assert Rational(1, -2).as_tuple() == (-1, 2)
        assert Rational(-1, -2).as_tuple() == (1, 2)

    def test_zero_denominator_rejected(self):
        with pytest.raises(InvalidRational):
            Rational(1, 0)

    def test_invalid_rational_is_zero_division(self):
        with pytest.raises(ZeroDivisionError):
            Rational(5, 0)

    def test_float_components_rejected(self):
        with pytest.raises(TypeError):
            Rational(0.5)

    def test_bool_components_rejected(self):
        with pytest.raises(TypeError):
            Rational(True)


# ---------------------------------------------------------------------------
# Parsing and formatting
# ---------------------------------------------------------------------------


class TestRationalText:
    def test_from_string_fraction(self):
        assert Rational.from_string("30000/1001") == Rational(30000, 1001)

    def test_from_string_integer(self):
        assert Rational.from_string("-5") == Rational(-5)

    def test_from_string_strips_and_reduces(self):
        assert Rational.from_string(" 3/6 ") == Rational(1, 2)

    def test_from_string_garbage(self):
        with pytest.raises(ValueError):
            Rational.from_string("abc")

    def test_from_string_zero_denominator(self):
        with pytest.raises(InvalidRational):
            Rational.from_string("1/0")

    def test_str(self):
        assert str(Rational(1, 2)) == "1/2"
        assert str(Rational(4, 2)) == "2"

    def test_repr(self):
        assert repr(Rational(-3, 9)) == "Rational(-1, 3)"

    def test_from_float(self):
        assert Rational.from_float(0.25) == Rational(1, 4)
        assert Rational.from_float(1 / 3) == Rational(1, 3)

    def test_from_float_rejects_nan(self):
        with pytest.raises(InvalidRational):
            Rational.from_float(float("nan"))


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


class TestRationalArithmetic:
    def test_add(self):
        assert Rational(1, 3) + Rational(1, 6) == Rational(1, 2)

    def test_add_int(self):
        assert Rational(1, 2) + 1 == Rational(3, 2)
        assert 1 + Rational(1, 2) == Rational(3, 2)

    def test_subtract(self):
        assert Rational(3, 4) - Rational(1, 4) == Rational(1, 2)
        assert 1 - Rational(1, 4) == Rational(3, 4)

    def test_multiply(self):
        assert Rational(2, 3) * 3 == 2
        assert Rational(2, 3) * Rational(3, 4) == Rational(1, 2)

    def test_divide(self):
        assert Rational(1, 2) / Rational(1, 4) == 2
        assert 1 / Rational(1, 4) == 4

    def test_divide_by_zero(self):
        with pytest.raises(InvalidRational):
            Rational(1, 2) / Rational(0)

    def test_float_operand_not_supported(self):
        with pytest.raises(TypeError):
            Rational(1, 2) + 0.5

    def test_exact_repeated_sum(self):
        total = Rational(0)
        for _ in range(1001):
            total = total + Rational(1, 1001)
        assert total == 1

    def test_unary(self):
        assert -Rational(1, 2) == Rational(-1, 2)
        assert abs(Rational(-1, 2)) == Rational(1, 2)
        assert +Rational(1, 2) == Rational(1, 2)

    def test_flipped(self):
        assert Rational(-2, 3).flipped() == Rational(-3, 2)

    def test_flipped_zero(self):
        with pytest.raises(InvalidRational):
            Rational(0).flipped()

    def test_large_values_do_not_overflow(self):
        big = Rational(2 ** 80, 3)
        assert (big * 3).numerator == 2 ** 80


# ---------------------------------------------------------------------------
# Comparison, hashing and conversion
# ---------------------------------------------------------------------------


class TestRationalComparison:
    def test_ordering(self):
        assert Rational(1, 3) < Rational(1, 2)
        assert Rational(1, 2) <= Rational(2, 4)
        assert Rational(2) > 1
        assert Rational(-1, 2) >= Rational(-1)

    def test_equality_with_int(self):
        assert Rational(4, 2) == 2
        assert Rational(1, 2) != 0

    def test_sort(self):
        values = [Rational(1, 2), Rational(-1), Rational(1, 3), Rational(2)]
        assert sorted(values) == [Rational(-1), Rational(1, 3), Rational(1, 2), Rational(2)]

    def test_hash_matches_equality(self):
        assert hash(Rational(2)) == hash(2)
        assert len({Rational(1, 2), Rational(2, 4), Rational(3, 6)}) == 1

    def test_to_double(self):
        assert Rational(1, 4).to_double() == pytest.approx(0.25)
        assert float(Rational(-3, 2)) == pytest.approx(-1.5)

    def test_int_truncates_toward_zero(self):
        assert int(Rational(7, 2)) == 3
        assert int(Rational(-7, 2)) == -3

    def test_floor_and_ceil(self):
        assert math.floor(Rational(-7, 2)) == -4
        assert math.ceil(Rational(-7, 2)) == -3
        assert math.ceil(Rational(7, 2)) == 4

    def test_bool(self):
        assert not Rational(0, 5)
        assert Rational(1, 5)
