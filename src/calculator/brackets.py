"""
Progressive bracket evaluation shared by federal ordinary income tax and
graduated state income tax.

No rounding happens here; callers round where their rules say so.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from .decimal_math import Numeric, ZERO, min_decimal, to_decimal


@dataclass(frozen=True)
class TaxBracket:
    """A single income range taxed at one marginal rate. max=None is unbounded."""
    min: Decimal
    max: Optional[Decimal]
    rate: Decimal

    @classmethod
    def from_row(cls, row: Sequence[Optional[Numeric]]) -> "TaxBracket":
        """Build from a ``[min, max, rate]`` row as stored in the YAML tables."""
        lower, upper, rate = row
        return cls(
            min=to_decimal(lower),
            max=None if upper is None else to_decimal(upper),
            rate=to_decimal(rate),
        )

    @property
    def width(self) -> Optional[Decimal]:
        if self.max is None:
            return None
        return self.max - self.min


@dataclass(frozen=True)
class BracketSlice:
    """The part of the taxable amount that fell into one bracket."""
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal

    def to_dict(self) -> dict:
        return {
            "rate": float(self.rate),
            "taxable_amount": float(self.taxable_amount),
            "tax": float(self.tax),
        }


@dataclass(frozen=True)
class BracketTaxResult:
    breakdown: Tuple[BracketSlice, ...]
    total: Decimal
    marginal_rate: Decimal


def compute_bracket_tax(taxable_amount: Numeric, brackets: Sequence[TaxBracket]) -> BracketTaxResult:
    """
    Apply progressive brackets to a taxable amount.

    Brackets are walked in ascending order and only the ones actually touched
    appear in the breakdown. The marginal rate is the rate of the last touched
    bracket, or 0 when nothing is taxable.

    Examples:
        >>> brackets = [TaxBracket.from_row(r) for r in ([0, 10, 0.1], [10, None, 0.2])]
        >>> compute_bracket_tax(15, brackets).total
        Decimal('2.0')
    """
    remaining = to_decimal(taxable_amount)
    breakdown: List[BracketSlice] = []
    total = ZERO
    marginal_rate = ZERO

    for bracket in brackets:
        if remaining <= 0:
            break

        width = bracket.width
        consumed = remaining if width is None else min_decimal(remaining, width)
        tax = consumed * bracket.rate

        breakdown.append(BracketSlice(rate=bracket.rate, taxable_amount=consumed, tax=tax))
        total += tax
        remaining -= consumed
        marginal_rate = bracket.rate

    return BracketTaxResult(breakdown=tuple(breakdown), total=total, marginal_rate=marginal_rate)


def validate_brackets(brackets: Iterable[TaxBracket]) -> List[str]:
    """
    Check the bracket-table invariants.

    Returns a list of problems (empty when the table is well formed):
    starts at 0, each bracket begins where the previous one ends, rates
    strictly increase, and only the last bracket is unbounded.
    """
    table = list(brackets)
    problems: List[str] = []

    if not table:
        return ["bracket table is empty"]

    if table[0].min != 0:
        problems.append(f"first bracket starts at {table[0].min}, expected 0")

    for i, bracket in enumerate(table):
        is_last = i == len(table) - 1
        if bracket.max is None:
            if not is_last:
                problems.append(f"bracket {i} is unbounded but is not the last bracket")
        elif bracket.max <= bracket.min:
            problems.append(f"bracket {i} has max {bracket.max} <= min {bracket.min}")
        elif is_last:
            problems.append("last bracket must be unbounded")

        if not is_last:
            nxt = table[i + 1]
            if bracket.max is not None and nxt.min != bracket.max:
                problems.append(f"bracket {i + 1} starts at {nxt.min}, expected {bracket.max}")
            if nxt.rate <= bracket.rate:
                problems.append(f"bracket {i + 1} rate {nxt.rate} does not exceed {bracket.rate}")

    return problems
