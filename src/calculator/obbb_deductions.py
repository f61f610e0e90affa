"""
One Big Beautiful Bill Act (OBBB) deductions, TY2025-2028.

- Senior bonus: $6,000 per taxpayer/spouse aged 65+, reduced by $100 for each
  full $1,000 of AGI over the phase-out start, per senior
- Tips: up to $25,000 when AGI is within the limit
- Overtime premium: up to $12,500 single / $25,000 joint within the limit
- Auto loan interest: up to $10,000 within the limit

Years without OBBB parameters report the deductions as not available.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from models.deductions import OBBBInput
from models.taxpayer import FilingStatus

from .decimal_math import THOUSAND, ZERO, format_money, min_decimal, non_negative, to_decimal, whole_dollars
from .exceptions import UnsupportedTaxYear
from .tax_year_config import IncomeLimitedDeduction, TaxYearDataProvider, get_default_provider
from .validation import coerce_model

logger = logging.getLogger(__name__)

SENIOR_AGE = 65
SENIOR_REDUCTION_PER_THOUSAND = Decimal("100")


@dataclass(frozen=True)
class OBBBDeductionLine:
    name: str
    amount: Decimal
    max: Decimal
    eligible: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class OBBBDeductionResult:
    tax_year: int
    available: bool
    deductions: Tuple[OBBBDeductionLine, ...] = ()
    total_deduction: Decimal = ZERO
    marginal_rate: Decimal = ZERO
    estimated_savings: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tax_year": self.tax_year,
            "available": self.available,
            "deductions": [
                {
                    "name": d.name,
                    "amount": float(d.amount),
                    "max": float(d.max),
                    "eligible": d.eligible,
                    "reason": d.reason,
                }
                for d in self.deductions
            ],
            "total_deduction": float(self.total_deduction),
            "marginal_rate": float(self.marginal_rate),
            "estimated_savings": float(self.estimated_savings),
        }


def _income_limited_line(
    name: str,
    claimed: Decimal,
    params: IncomeLimitedDeduction,
    status: FilingStatus,
    agi: Decimal,
) -> OBBBDeductionLine:
    cap = params.max_for(status)
    limit = params.agi_limit_for(status)
    if agi <= limit:
        return OBBBDeductionLine(name=name, amount=min_decimal(claimed, cap), max=cap, eligible=True)
    return OBBBDeductionLine(
        name=name, amount=ZERO, max=cap, eligible=False,
        reason=f"AGI exceeds {format_money(limit)} limit",
    )


class OBBBDeductionCalculator:
    """Computes the OBBB deductions a taxpayer qualifies for and the estimated savings."""

    def __init__(self, provider: Optional[TaxYearDataProvider] = None):
        self.provider = provider or get_default_provider()

    def calculate(self, obbb_input: Union[OBBBInput, Mapping[str, Any]]) -> OBBBDeductionResult:
        """
        Raises:
            UnsupportedTaxYear: No parameter table exists for the year.
        """
        inp = coerce_model(OBBBInput, obbb_input)
        config = self.provider.get(inp.tax_year)
        if config is None:
            raise UnsupportedTaxYear(inp.tax_year, self.provider.supported_years())

        rate = to_decimal(inp.marginal_rate)
        obbb = config.obbb_deductions
        if obbb is None:
            logger.info(f"OBBB deductions not available for TY{inp.tax_year}")
            return OBBBDeductionResult(tax_year=inp.tax_year, available=False, marginal_rate=rate)

        status = FilingStatus(inp.filing_status)
        is_joint = status == FilingStatus.MARRIED_JOINT
        agi = to_decimal(inp.agi)
        lines = []

        # Senior bonus
        senior_count = int((inp.age or 0) >= SENIOR_AGE) + int(is_joint and (inp.spouse_age or 0) >= SENIOR_AGE)
        bonus = obbb.senior_bonus
        if senior_count > 0:
            max_senior = bonus.amount * senior_count
            phaseout = bonus.phaseout_mfj if is_joint else bonus.phaseout_single
            amount = max_senior
            if agi > phaseout:
                full_thousands = ((agi - phaseout) // THOUSAND)
                amount = non_negative(max_senior - full_thousands * SENIOR_REDUCTION_PER_THOUSAND * senior_count)
            lines.append(OBBBDeductionLine("Senior Bonus Deduction (65+)", amount, max_senior, True))
        else:
            lines.append(OBBBDeductionLine(
                "Senior Bonus Deduction (65+)", ZERO, bonus.amount, False, "Must be age 65 or older",
            ))

        tips = to_decimal(inp.tip_income)
        if tips > 0:
            lines.append(_income_limited_line("Tips Income Deduction", tips, obbb.tips, status, agi))

        overtime = to_decimal(inp.overtime_pay)
        if overtime > 0:
            lines.append(_income_limited_line("Overtime Pay Deduction", overtime, obbb.overtime, status, agi))

        auto_interest = to_decimal(inp.auto_loan_interest)
        if auto_interest > 0:
            lines.append(_income_limited_line(
                "Auto Loan Interest Deduction", auto_interest, obbb.auto_loan_interest, status, agi,
            ))

        total = sum((line.amount for line in lines), ZERO)
        return OBBBDeductionResult(
            tax_year=inp.tax_year,
            available=True,
            deductions=tuple(lines),
            total_deduction=total,
            marginal_rate=rate,
            estimated_savings=whole_dollars(total * rate),
        )
