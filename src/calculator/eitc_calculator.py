"""
Earned Income Tax Credit (EITC).

Source: IRS Rev. Proc. 2023-34 (TY2024), Rev. Proc. 2024-40 (TY2025).

The credit is a four-segment schedule evaluated in order:

    INELIGIBLE  unsupported year, married filing separately, too much
                investment income, no earned income, or income at/over the limit
    PHASE_IN    earned income up to the earned-income threshold
    PLATEAU     maximum credit while income stays at/below the phase-out start
    PHASE_OUT   maximum credit reduced by phaseout_rate per dollar over the start

Phase-out is measured on the greater of earned income and AGI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from models.tax_input import EITCInput
from models.taxpayer import FilingStatus

from .decimal_math import ZERO, format_money, max_decimal, non_negative, to_decimal, whole_dollars
from .exceptions import InvalidInput
from .tax_year_config import TaxYearDataProvider, get_default_provider
from .validation import TaxInputValidator, coerce_model

logger = logging.getLogger(__name__)

MAX_QUALIFYING_CHILDREN = 3


class EITCPhase(str, Enum):
    INELIGIBLE = "ineligible"
    PHASE_IN = "phase-in"
    PLATEAU = "plateau"
    PHASE_OUT = "phase-out"


@dataclass(frozen=True)
class EITCResult:
    eligible: bool
    credit: Decimal
    max_possible_credit: Decimal
    phase: EITCPhase
    qualifying_children: int
    income_limit: Decimal
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligible": self.eligible,
            "credit": float(self.credit),
            "max_possible_credit": float(self.max_possible_credit),
            "phase": self.phase.value,
            "qualifying_children": self.qualifying_children,
            "income_limit": float(self.income_limit),
            "reason": self.reason,
        }


def _ineligible(
    reason: str,
    children: int = 0,
    max_credit: Decimal = ZERO,
    income_limit: Decimal = ZERO,
) -> EITCResult:
    return EITCResult(
        eligible=False,
        credit=ZERO,
        max_possible_credit=max_credit,
        phase=EITCPhase.INELIGIBLE,
        qualifying_children=children,
        income_limit=income_limit,
        reason=reason,
    )


class EITCEngine:
    """EITC phase-in / plateau / phase-out calculator keyed by year and children."""

    def __init__(
        self,
        provider: Optional[TaxYearDataProvider] = None,
        validator: Optional[TaxInputValidator] = None,
    ):
        self.provider = provider or get_default_provider()
        self.validator = validator or TaxInputValidator()

    def calculate(self, eitc_input: Union[EITCInput, Mapping[str, Any]]) -> EITCResult:
        """
        Calculate the credit.

        Raises:
            InvalidInput: Non-finite amounts or a negative child count.
        """
        eitc_input = coerce_model(EITCInput, eitc_input)
        issues = self.validator.check_eitc(eitc_input)
        if issues:
            raise InvalidInput(issues)

        result = self._evaluate(eitc_input)
        logger.debug(
            f"EITC {eitc_input.tax_year}: phase={result.phase.value} credit={result.credit}"
        )
        return result

    def _evaluate(self, inp: EITCInput) -> EITCResult:
        config = self.provider.get(inp.tax_year)
        if config is None:
            return _ineligible(f"TY{inp.tax_year} not supported")

        status = FilingStatus(inp.filing_status)
        if status == FilingStatus.MARRIED_SEPARATE:
            return _ineligible("Married filing separately cannot claim EITC")

        children = min(inp.qualifying_children, MAX_QUALIFYING_CHILDREN)
        table = config.eitc
        params = table.for_children(children)

        is_joint = status == FilingStatus.MARRIED_JOINT
        phaseout_start = params.phaseout_start_mfj if is_joint else params.phaseout_start
        income_limit = params.completion_threshold
        if is_joint:
            income_limit += params.phaseout_start_mfj - params.phaseout_start

        earned = to_decimal(inp.earned_income)
        agi = to_decimal(inp.agi)
        investment_income = to_decimal(inp.investment_income)
        phaseout_income = max_decimal(earned, agi)

        if investment_income > table.investment_income_limit:
            return _ineligible(
                f"Investment income exceeds {format_money(table.investment_income_limit)} limit",
                children, params.max_credit, income_limit,
            )
        if earned <= 0:
            return _ineligible("No earned income", children, params.max_credit, income_limit)
        if phaseout_income >= income_limit:
            return _ineligible(
                f"Income at or above the {format_money(income_limit)} limit",
                children, params.max_credit, income_limit,
            )

        if earned <= params.earned_income_threshold:
            phase = EITCPhase.PHASE_IN
            credit = earned * params.credit_rate
        elif phaseout_income <= phaseout_start:
            phase = EITCPhase.PLATEAU
            credit = params.max_credit
        else:
            phase = EITCPhase.PHASE_OUT
            credit = params.max_credit - (phaseout_income - phaseout_start) * params.phaseout_rate

        credit = whole_dollars(non_negative(credit))
        return EITCResult(
            eligible=credit > 0,
            credit=credit,
            max_possible_credit=params.max_credit,
            phase=phase,
            qualifying_children=children,
            income_limit=income_limit,
        )
