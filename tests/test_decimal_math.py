"""
Tests for Decimal Math Utilities.

Tests verify:
1. Decimal precision eliminates floating point errors
2. Whole-dollar rounding is half-up, never banker's rounding
3. Ceiling rounding used by step phase-outs
4. Division and flooring helpers
"""

from decimal import Decimal, InvalidOperation

import pytest

from calculator.decimal_math import (
    ceil_whole,
    divide,
    format_money,
    money,
    non_negative,
    to_decimal,
    whole_dollars,
)


class TestDecimalConversion:
    """Tests for value conversion to Decimal."""

    def test_to_decimal_from_int(self):
        result = to_decimal(100)
        assert result == Decimal("100")
        assert isinstance(result, Decimal)

    def test_to_decimal_from_float_keeps_repr(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_passes_decimal_through(self):
        value = Decimal("1.23")
        assert to_decimal(value) is value

    def test_float_sum_is_exact(self):
        assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")


class TestRounding:

    @pytest.mark.parametrize("value,expected", [
        (3291.5, "3292"),
        (3291.49, "3291"),
        (2.5, "3"),
        (0.5, "1"),
        (76.5, "77"),
    ])
    def test_whole_dollars_half_up(self, value, expected):
        assert whole_dollars(value) == Decimal(expected)

    def test_money_rounds_to_pennies(self):
        assert money(100.005) == Decimal("100.01")
        assert money(100.994) == Decimal("100.99")

    @pytest.mark.parametrize("value,expected", [(0.001, "1"), (3, "3"), (10.5, "11"), (0, "0")])
    def test_ceil_whole(self, value, expected):
        assert ceil_whole(value) == Decimal(expected)


class TestHelpers:

    def test_divide(self):
        assert divide(1, 4) == Decimal("0.25")

    def test_divide_by_zero_default(self):
        assert divide(1, 0, default=0) == Decimal("0")

    def test_divide_by_zero_raises(self):
        with pytest.raises(InvalidOperation):
            divide(1, 0)

    def test_non_negative(self):
        assert non_negative(-3) == Decimal("0")
        assert non_negative(3) == Decimal("3")

    def test_format_money(self):
        assert format_money(1234567.891) == "$1,234,567.89"
