"""State tax engine - dispatches on the state's tax structure."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from calculator.brackets import compute_bracket_tax
from calculator.decimal_math import Numeric, ZERO, divide, non_negative, to_decimal, whole_dollars
from calculator.exceptions import InvalidInput, InvalidState
from calculator.state.state_registry import StateDataProvider, get_default_state_provider
from calculator.state.state_tax_config import StateTaxType
from calculator.validation import collect, resolve_state_filing_status, validate_income, validate_state_code
from models.taxpayer import FilingStatus, StateFilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTaxResult:
    state_code: str
    state_name: str
    tax_type: StateTaxType
    gross_income: Decimal
    deduction: Decimal
    adjusted_income: Decimal
    tax: Decimal  # whole dollars
    effective_rate: Decimal  # unrounded tax / gross_income
    has_local_taxes: bool
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state_code": self.state_code,
            "state_name": self.state_name,
            "tax_type": self.tax_type.value,
            "gross_income": float(self.gross_income),
            "deduction": float(self.deduction),
            "adjusted_income": float(self.adjusted_income),
            "tax": float(self.tax),
            "effective_rate": float(self.effective_rate),
            "has_local_taxes": self.has_local_taxes,
            "notes": self.notes,
        }


class StateTaxEngine:
    """
    Orchestrates state tax calculations.

    Looks the state up in the StateDataProvider and applies its structure:
    no tax, a flat rate, or graduated brackets (top rate when no table ships).
    """

    def __init__(self, provider: Optional[StateDataProvider] = None):
        self.provider = provider or get_default_state_provider()

    def calculate(
        self,
        state_code: str,
        taxable_income: Numeric,
        filing_status: Union[StateFilingStatus, FilingStatus, str] = StateFilingStatus.SINGLE,
    ) -> StateTaxResult:
        """
        Calculate state income tax.

        Args:
            state_code: Two-letter state code, any case (e.g., "CA", "ny")
            taxable_income: Income the state taxes before its own deductions
            filing_status: single or married; a federal status is mapped
                with StateFilingStatus.from_federal

        Raises:
            InvalidInput: Malformed state code, income or filing status.
            InvalidState: Well-formed code that matches no state.
        """
        status, status_issue = resolve_state_filing_status(filing_status)
        issues = collect(
            validate_state_code(state_code),
            validate_income(taxable_income, "taxable_income"),
            status_issue,
        )
        if issues:
            raise InvalidInput(issues)

        state = self.provider.get(state_code)
        if state is None:
            raise InvalidState(state_code)

        income = to_decimal(taxable_income)

        if state.tax_type == StateTaxType.NONE:
            return StateTaxResult(
                state_code=state.code,
                state_name=state.name,
                tax_type=state.tax_type,
                gross_income=income,
                deduction=ZERO,
                adjusted_income=income,
                tax=ZERO,
                effective_rate=ZERO,
                has_local_taxes=False,
                notes=state.notes,
            )

        deduction = state.deduction_for(status)
        adjusted = non_negative(income - deduction)

        if state.tax_type == StateTaxType.GRADUATED and state.brackets:
            tax = compute_bracket_tax(adjusted, state.brackets).total
        else:
            tax = adjusted * state.top_rate

        result = StateTaxResult(
            state_code=state.code,
            state_name=state.name,
            tax_type=state.tax_type,
            gross_income=income,
            deduction=deduction,
            adjusted_income=adjusted,
            tax=whole_dollars(tax),
            effective_rate=divide(tax, income) if income > 0 else ZERO,
            has_local_taxes=state.local_taxes,
            notes=state.notes,
        )
        logger.debug(f"State tax {state.code}: adjusted={adjusted} tax={result.tax}")
        return result

    def has_income_tax(self, state_code: str) -> bool:
        """
        Check if a state levies an income tax.

        Raises:
            InvalidState: Unknown state code.
        """
        state = self.provider.get(state_code)
        if state is None:
            raise InvalidState(state_code)
        return state.has_income_tax

    def get_supported_states(self) -> List[str]:
        return self.provider.supported_states()

    def get_no_income_tax_states(self) -> List[str]:
        return self.provider.no_income_tax_states()
