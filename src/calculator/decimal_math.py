"""
Decimal Math Utilities for Tax Calculations.

Provides precise decimal arithmetic to avoid floating point errors
in tax calculations. Every engine converts its inputs with ``to_decimal``
on entry and works in Decimal until the result is rendered.

Why Decimal?
- Float: 0.1 + 0.2 = 0.30000000000000004
- Decimal: 0.1 + 0.2 = 0.3

This matters for:
- Tax brackets where thresholds are precise ($47,150 vs $47,150.00001)
- Whole-dollar rounding of credits and state tax (half up, never banker's)
- Deterministic output: same inputs always produce the same amounts
"""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")  # Round to pennies
WHOLE_DOLLAR = Decimal("1")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(100.50)
        Decimal('100.5')
        >>> to_decimal("100.50")
        Decimal('100.50')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def money(value: Numeric) -> Decimal:
    """
    Convert value to money (rounded to pennies).

    Examples:
        >>> money(100.999)
        Decimal('101.00')
        >>> money(100.994)
        Decimal('100.99')
    """
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def whole_dollars(value: Numeric) -> Decimal:
    """
    Round to the nearest whole dollar, halves away from zero for positives.

    Examples:
        >>> whole_dollars(3291.5)
        Decimal('3292')
        >>> whole_dollars(3291.49)
        Decimal('3291')
    """
    return to_decimal(value).quantize(WHOLE_DOLLAR, rounding=ROUND_HALF_UP)


def ceil_whole(value: Numeric) -> Decimal:
    """
    Round up to the next whole number.

    Used for the Child Tax Credit phase-out step (each started $1,000 counts)
    and the quarterly estimated payment.

    Examples:
        >>> ceil_whole(0.001)
        Decimal('1')
        >>> ceil_whole(3)
        Decimal('3')
    """
    return to_decimal(value).quantize(WHOLE_DOLLAR, rounding=ROUND_CEILING)


def divide(a: Numeric, b: Numeric, default: Optional[Numeric] = None) -> Decimal:
    """
    Divide a by b with Decimal precision.

    Args:
        a: Dividend
        b: Divisor
        default: Value to return if division by zero (None raises error)

    Returns:
        Quotient as Decimal

    Raises:
        InvalidOperation: If b is zero and no default provided
    """
    b_dec = to_decimal(b)
    if b_dec == 0:
        if default is not None:
            return to_decimal(default)
        raise InvalidOperation("Division by zero")
    return to_decimal(a) / b_dec


def min_decimal(*values: Numeric) -> Decimal:
    """Minimum of values with Decimal precision."""
    return min(to_decimal(v) for v in values)


def max_decimal(*values: Numeric) -> Decimal:
    """Maximum of values with Decimal precision."""
    return max(to_decimal(v) for v in values)


def non_negative(value: Numeric) -> Decimal:
    """Floor a value at zero."""
    return max_decimal(value, ZERO)


def format_money(value: Numeric) -> str:
    """
    Format value as money string.

    Examples:
        >>> format_money(1234567.89)
        '$1,234,567.89'
    """
    m = money(value)
    return f"${m:,.2f}"


# Constants for common tax calculations
ZERO = Decimal("0")
HALF = Decimal("0.5")
THOUSAND = Decimal("1000")

# Schedule SE: net earnings are 92.35% of net profit
SE_NET_EARNINGS_FACTOR = Decimal("0.9235")
NIIT_RATE = Decimal("0.038")
