"""
Schedule A itemized deductions and the standard-vs-itemized comparison.

Medical expenses count only above 7.5% of AGI; state and local taxes are
limited by the year's SALT cap (see calculator.salt_cap).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from models.deductions import ItemizedDeductionInput
from models.taxpayer import FilingStatus

from .decimal_math import min_decimal, non_negative, to_decimal
from .exceptions import UnsupportedTaxYear
from .salt_cap import get_salt_cap
from .tax_year_config import TaxYearDataProvider, get_default_provider
from .validation import coerce_model

logger = logging.getLogger(__name__)

MEDICAL_AGI_FLOOR = Decimal("0.075")


@dataclass(frozen=True)
class ItemizedDeductionBreakdown:
    medical: Decimal
    salt_paid: Decimal
    salt_cap: Decimal
    salt: Decimal
    mortgage_interest: Decimal
    charitable: Decimal
    other: Decimal
    total: Decimal
    standard_deduction: Decimal
    recommendation: str  # "itemized" | "standard"
    savings: Decimal  # gap between the better and the worse choice

    @property
    def salt_limited(self) -> bool:
        return self.salt < self.salt_paid

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in self.__dict__.items()
        }


def compute_itemized_deductions(
    deductions: Union[ItemizedDeductionInput, Mapping[str, Any]],
    provider: Optional[TaxYearDataProvider] = None,
) -> ItemizedDeductionBreakdown:
    """
    Total Schedule A deductions and compare them with the standard deduction.

    The total is what a caller passes as ``TaxInput.itemized_deductions``.

    Raises:
        UnsupportedTaxYear: No parameter table exists for the year.
    """
    inp = coerce_model(ItemizedDeductionInput, deductions)
    provider = provider or get_default_provider()
    config = provider.get(inp.tax_year)
    if config is None:
        raise UnsupportedTaxYear(inp.tax_year, provider.supported_years())

    status = FilingStatus(inp.filing_status)
    agi = to_decimal(inp.agi)

    medical = non_negative(to_decimal(inp.medical_expenses) - agi * MEDICAL_AGI_FLOOR)
    salt_paid = to_decimal(inp.state_local_taxes)
    salt_cap = get_salt_cap(inp.tax_year, status, agi, provider=provider)
    salt = min_decimal(salt_paid, salt_cap)
    mortgage = to_decimal(inp.mortgage_interest)
    charitable = to_decimal(inp.charitable_donations)
    other = to_decimal(inp.other_itemized)
    total = medical + salt + mortgage + charitable + other

    additional_count = int(inp.age_65_or_older) + int(inp.blind)
    standard = config.standard_deduction[status] + config.additional_standard_deduction[status] * additional_count

    logger.debug(f"Itemized {inp.tax_year}: total={total} salt_cap={salt_cap} standard={standard}")
    return ItemizedDeductionBreakdown(
        medical=medical,
        salt_paid=salt_paid,
        salt_cap=salt_cap,
        salt=salt,
        mortgage_interest=mortgage,
        charitable=charitable,
        other=other,
        total=total,
        standard_deduction=standard,
        recommendation="itemized" if total > standard else "standard",
        savings=abs(total - standard),
    )
