"""
Form W-4 withholding estimator.

Runs the federal pipeline on the expected annual pay, spreads the tax over
the pay periods, and suggests the W-4 entries (Steps 1(c) through 4(c))
that bring withholding in line with the estimate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from models.tax_input import TaxInput
from models.taxpayer import FilingStatus
from models.withholding import PayFrequency, W4Input

from .decimal_math import ZERO, ceil_whole, format_money, to_decimal, whole_dollars
from .engine import FederalTaxEngine, TaxBreakdown
from .validation import coerce_model

logger = logging.getLogger(__name__)

PAY_PERIODS: Mapping[PayFrequency, int] = MappingProxyType({
    PayFrequency.WEEKLY: 52,
    PayFrequency.BIWEEKLY: 26,
    PayFrequency.SEMIMONTHLY: 24,
    PayFrequency.MONTHLY: 12,
})

FILING_STATUS_LABELS: Mapping[FilingStatus, str] = MappingProxyType({
    FilingStatus.SINGLE: "Single or Married filing separately",
    FilingStatus.MARRIED_SEPARATE: "Single or Married filing separately",
    FilingStatus.MARRIED_JOINT: "Married filing jointly or Qualifying surviving spouse",
    FilingStatus.HEAD_OF_HOUSEHOLD: "Head of household",
})

CREDIT_PER_DEPENDENT = Decimal("2000")


@dataclass(frozen=True)
class W4Recommendation:
    step: str
    description: str
    value: Optional[Decimal] = None


@dataclass(frozen=True)
class W4Result:
    tax_year: int
    pay_frequency: PayFrequency
    pay_periods: int
    estimated_annual_tax: Decimal
    per_paycheck_withholding: Decimal
    current_annual_withholding: Decimal
    difference: Decimal  # positive = under-withheld
    recommendations: Tuple[W4Recommendation, ...]
    breakdown: TaxBreakdown

    @property
    def under_withheld(self) -> bool:
        return self.difference > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tax_year": self.tax_year,
            "pay_frequency": self.pay_frequency.value,
            "pay_periods": self.pay_periods,
            "estimated_annual_tax": float(self.estimated_annual_tax),
            "per_paycheck_withholding": float(self.per_paycheck_withholding),
            "current_annual_withholding": float(self.current_annual_withholding),
            "difference": float(self.difference),
            "recommendations": [
                {
                    "step": r.step,
                    "description": r.description,
                    "value": float(r.value) if r.value is not None else None,
                }
                for r in self.recommendations
            ],
        }


class W4WithholdingCalculator:
    """Estimate per-paycheck withholding and the W-4 entries that support it."""

    def __init__(self, engine: Optional[FederalTaxEngine] = None):
        self.engine = engine or FederalTaxEngine()

    def calculate(self, w4_input: Union[W4Input, Mapping[str, Any]]) -> W4Result:
        """
        Raises:
            InvalidInput: Malformed W-4 inputs.
            UnsupportedTaxYear: No parameter table exists for the year.
        """
        inp = coerce_model(W4Input, w4_input)
        frequency = PayFrequency(inp.pay_frequency)
        status = FilingStatus(inp.filing_status)
        periods = PAY_PERIODS[frequency]

        breakdown = self.engine.calculate(TaxInput(
            tax_year=inp.tax_year,
            filing_status=status,
            gross_income=inp.annual_salary + inp.other_income,
            w2_income=inp.annual_salary,
            itemized_deductions=inp.deductions,
            dependents=inp.dependents,
        ))

        estimated = breakdown.total_federal_tax
        per_paycheck = whole_dollars(estimated / periods)
        extra = to_decimal(inp.extra_withholding)
        current = (per_paycheck + extra) * periods
        difference = estimated - current

        recommendations = self._recommendations(inp, status, breakdown, difference, periods)
        logger.debug(
            f"W-4 {inp.tax_year}/{frequency.value}: estimated={estimated} "
            f"per_paycheck={per_paycheck} difference={difference}"
        )
        return W4Result(
            tax_year=inp.tax_year,
            pay_frequency=frequency,
            pay_periods=periods,
            estimated_annual_tax=estimated,
            per_paycheck_withholding=per_paycheck,
            current_annual_withholding=current,
            difference=difference,
            recommendations=recommendations,
            breakdown=breakdown,
        )

    @staticmethod
    def _recommendations(
        inp: W4Input,
        status: FilingStatus,
        breakdown: TaxBreakdown,
        difference: Decimal,
        periods: int,
    ) -> Tuple[W4Recommendation, ...]:
        recs = [W4Recommendation("Step 1(c)", f"Filing status: {FILING_STATUS_LABELS[status]}")]

        if inp.spouse_works or inp.multiple_jobs:
            recs.append(W4Recommendation(
                "Step 2",
                "Multiple jobs or spouse works: use the IRS estimator or check the box in Step 2(c)",
            ))

        if inp.dependents > 0:
            credit = CREDIT_PER_DEPENDENT * inp.dependents
            recs.append(W4Recommendation(
                "Step 3",
                f"Claim dependents: {inp.dependents} x $2,000 = {format_money(credit)}",
                credit,
            ))

        other_income = to_decimal(inp.other_income)
        if other_income > 0:
            recs.append(W4Recommendation(
                "Step 4(a)", f"Other income: {format_money(other_income)}", other_income,
            ))

        itemized = to_decimal(inp.deductions)
        standard = breakdown.standard_deduction_amount
        if itemized > standard:
            excess = itemized - standard
            recs.append(W4Recommendation(
                "Step 4(b)", f"Deductions above the standard deduction: {format_money(excess)}", excess,
            ))

        if difference > ZERO:
            per_period = ceil_whole(difference / periods)
            recs.append(W4Recommendation(
                "Step 4(c)", f"Extra withholding per paycheck: {format_money(per_period)}", per_period,
            ))

        return tuple(recs)
