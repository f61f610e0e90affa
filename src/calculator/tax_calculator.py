"""
Combined federal and state tax calculator.

Runs the federal pipeline, nets the EITC against federal tax, adds the
employee share of FICA on W-2 wages, and optionally applies a state's
income tax to federal AGI.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

from models.tax_input import EITCInput, TaxInput
from models.taxpayer import StateFilingStatus

from calculator.decimal_math import ZERO, divide, min_decimal, non_negative
from calculator.eitc_calculator import EITCEngine, EITCResult
from calculator.engine import FederalTaxEngine, ResolvedTaxInput, TaxBreakdown
from calculator.state import StateTaxEngine, StateTaxResult
from calculator.tax_year_config import TaxYearConfig, TaxYearDataProvider
from calculator.validation import coerce_tax_input

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FICABreakdown:
    social_security: Decimal
    medicare: Decimal

    @property
    def total(self) -> Decimal:
        return self.social_security + self.medicare


@dataclass(frozen=True)
class TotalTaxSummary:
    """Federal, FICA and state liability for one return, with take-home pay."""
    tax_year: int
    gross_income: Decimal
    federal: TaxBreakdown
    eitc: EITCResult
    fica: FICABreakdown
    state: Optional[StateTaxResult]
    total_federal_tax: Decimal  # federal tax less EITC; negative = refundable credit
    total_tax: Decimal
    take_home: Decimal
    effective_rate: Decimal

    @property
    def state_tax(self) -> Decimal:
        return self.state.tax if self.state else ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tax_year": self.tax_year,
            "gross_income": float(self.gross_income),
            "federal": self.federal.to_dict(),
            "eitc": self.eitc.to_dict(),
            "fica": {
                "social_security": float(self.fica.social_security),
                "medicare": float(self.fica.medicare),
                "total": float(self.fica.total),
            },
            "state": self.state.to_dict() if self.state else None,
            "total_federal_tax": float(self.total_federal_tax),
            "total_tax": float(self.total_tax),
            "take_home": float(self.take_home),
            "effective_rate": float(self.effective_rate),
        }


def calculate_employee_fica(wages: Decimal, config: TaxYearConfig) -> FICABreakdown:
    """Employee Social Security (capped at the wage base) and Medicare on W-2 wages."""
    social_security = min_decimal(wages, config.social_security.wage_base) * config.social_security.tax_rate
    medicare = wages * config.medicare.tax_rate
    return FICABreakdown(social_security=social_security, medicare=medicare)


class TaxCalculator:
    """Calculate combined federal, FICA and state tax liability"""

    def __init__(
        self,
        provider: Optional[TaxYearDataProvider] = None,
        state_engine: Optional[StateTaxEngine] = None,
        include_state: bool = True,
    ):
        """
        Args:
            provider: Federal parameter tables. Defaults to the bundled YAML files.
            state_engine: State tax engine. Built lazily from the bundled state data.
            include_state: Whether to calculate state taxes. Defaults to True.
        """
        self._federal_engine = FederalTaxEngine(provider=provider)
        self._eitc_engine = EITCEngine(provider=self._federal_engine.provider)
        self._include_state = include_state
        self._state_engine = state_engine

    @property
    def state_engine(self) -> StateTaxEngine:
        if self._state_engine is None:
            self._state_engine = StateTaxEngine()
        return self._state_engine

    def calculate_federal(self, tax_input: Union[TaxInput, Mapping[str, Any]]) -> TaxBreakdown:
        """Federal breakdown only. For the step-by-step API use FederalTaxEngine."""
        return self._federal_engine.calculate(tax_input)

    def calculate_total(
        self,
        tax_input: Union[TaxInput, Mapping[str, Any]],
        state_code: Optional[str] = None,
    ) -> TotalTaxSummary:
        """
        Calculate the complete liability for one return.

        Args:
            tax_input: Federal inputs
            state_code: Two-letter state of residence; None skips state tax

        Raises:
            InvalidInput, UnsupportedTaxYear, CalculationError: From the federal pipeline.
            InvalidState: Unknown state code.
        """
        tax_input = coerce_tax_input(tax_input)
        federal = self._federal_engine.calculate(tax_input)
        config = self._federal_engine.get_config(tax_input.tax_year)
        resolved = ResolvedTaxInput.from_input(tax_input)

        eitc = self._eitc_engine.calculate(EITCInput(
            tax_year=tax_input.tax_year,
            filing_status=tax_input.filing_status,
            earned_income=tax_input.w2_income + tax_input.self_employment_income,
            agi=float(federal.adjusted_gross_income),
            qualifying_children=tax_input.dependents,
            investment_income=float(
                non_negative(resolved.long_term_gains) + non_negative(resolved.short_term_gains)
            ),
        ))

        fica = calculate_employee_fica(resolved.w2_income, config)

        state = None
        if self._include_state and state_code:
            state = self.state_engine.calculate(
                state_code,
                non_negative(federal.adjusted_gross_income),
                StateFilingStatus.from_federal(tax_input.filing_status),
            )

        total_federal = federal.total_federal_tax
        if eitc.eligible:
            total_federal -= eitc.credit

        state_tax = state.tax if state else ZERO
        total_tax = non_negative(total_federal) + fica.total + state_tax
        gross = resolved.gross_income

        summary = TotalTaxSummary(
            tax_year=tax_input.tax_year,
            gross_income=gross,
            federal=federal,
            eitc=eitc,
            fica=fica,
            state=state,
            total_federal_tax=total_federal,
            total_tax=total_tax,
            take_home=gross - total_tax,
            effective_rate=divide(total_tax, gross) if gross > 0 else ZERO,
        )
        logger.debug(
            f"Total tax {summary.tax_year}: federal={total_federal} fica={fica.total} "
            f"state={state_tax} total={total_tax}"
        )
        return summary

    def get_supported_states(self) -> List[str]:
        """Get list of supported state codes."""
        if not self._include_state:
            return []
        return self.state_engine.get_supported_states()

    def has_state_income_tax(self, state_code: str) -> bool:
        """Check if a state has income tax."""
        return self.state_engine.has_income_tax(state_code)
