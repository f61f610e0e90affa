"""
QBI (Qualified Business Income) Deduction Calculator - Section 199A

Simplified 20% pass-through deduction: the lesser of 20% of QBI and 20% of
taxable income before the deduction. SSTB classification and the W-2
wage / UBIA limitations are not modelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from calculator.decimal_math import Numeric, ZERO, min_decimal, to_decimal


@dataclass(frozen=True)
class QBIBreakdown:
    """Breakdown of the QBI deduction calculation."""

    total_qbi: Decimal = ZERO
    taxable_income_before_qbi: Decimal = ZERO  # ordinary taxable income plus long-term gains
    tentative_qbi_deduction: Decimal = ZERO  # rate x QBI
    taxable_income_limit: Decimal = ZERO  # rate x taxable income before QBI
    final_qbi_deduction: Decimal = ZERO

    @property
    def limited_by_taxable_income(self) -> bool:
        return self.final_qbi_deduction < self.tentative_qbi_deduction


class QBICalculator:
    """
    Calculator for the Section 199A Qualified Business Income deduction.

    The deduction is not floored at zero against taxable income: when the
    taxable-income limit is negative (a net capital loss larger than ordinary
    taxable income) the result is negative too, and downstream steps clamp
    adjusted taxable income at zero.
    """

    def __init__(self, rate: Numeric = Decimal("0.20")):
        self.rate = to_decimal(rate)

    def calculate(self, qbi: Numeric, taxable_income_before_qbi: Numeric) -> QBIBreakdown:
        """
        Calculate the QBI deduction.

        Args:
            qbi: Qualified business income
            taxable_income_before_qbi: Ordinary taxable income plus long-term gains

        Returns:
            QBIBreakdown with the final deduction
        """
        qbi_d = to_decimal(qbi)
        taxable_d = to_decimal(taxable_income_before_qbi)

        if qbi_d <= 0:
            return QBIBreakdown(total_qbi=qbi_d, taxable_income_before_qbi=taxable_d)

        tentative = qbi_d * self.rate
        limit = taxable_d * self.rate
        return QBIBreakdown(
            total_qbi=qbi_d,
            taxable_income_before_qbi=taxable_d,
            tentative_qbi_deduction=tentative,
            taxable_income_limit=limit,
            final_qbi_deduction=min_decimal(tentative, limit),
        )
