"""
State and local tax (SALT) deduction cap.

TY2025 raised the cap to $40,000 for most filers and phases the increase
back down, dollar for dollar, once AGI passes $500,000. The cap never drops
below the base $10,000.
"""

import logging
from decimal import Decimal
from typing import Optional, Union

from models.taxpayer import FilingStatus

from .decimal_math import Numeric, max_decimal, min_decimal, to_decimal
from .exceptions import InvalidInput
from .tax_year_config import TaxYearDataProvider, get_default_provider
from .validation import collect, resolve_filing_status, validate_income

logger = logging.getLogger(__name__)

DEFAULT_SALT_CAP = Decimal("10000")


def get_salt_cap(
    tax_year: int,
    filing_status: Union[FilingStatus, str],
    agi: Numeric,
    provider: Optional[TaxYearDataProvider] = None,
) -> Decimal:
    """
    Effective SALT cap for a year, filing status and AGI.

    Examples:
        >>> get_salt_cap(2025, FilingStatus.SINGLE, 515000)
        Decimal('25000')
        >>> get_salt_cap(2024, FilingStatus.MARRIED_SEPARATE, 80000)
        Decimal('5000')

    Raises:
        InvalidInput: Unrecognized filing status or a non-numeric AGI.
    """
    status, status_issue = resolve_filing_status(filing_status)
    issues = collect(status_issue, validate_income(agi, "agi", allow_negative=True))
    if issues:
        raise InvalidInput(issues)

    provider = provider or get_default_provider()
    config = provider.get(tax_year)
    if config is None:
        logger.warning(f"No SALT cap parameters for tax year {tax_year}, using ${DEFAULT_SALT_CAP}")
        return DEFAULT_SALT_CAP

    cap = config.salt_cap
    if status == FilingStatus.MARRIED_SEPARATE:
        return cap.mfs

    if cap.has_enhanced_cap:
        agi_d = to_decimal(agi)
        if agi_d <= cap.enhanced_agi_threshold:
            return cap.enhanced_cap
        reduction = min_decimal(agi_d - cap.enhanced_agi_threshold, cap.enhanced_cap - cap.base)
        return max_decimal(cap.base, cap.enhanced_cap - reduction)

    return cap.base
