from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from models.tax_input import TaxInput
from models.taxpayer import FilingStatus
from calculator.brackets import BracketSlice, compute_bracket_tax
from calculator.decimal_math import (
    HALF, NIIT_RATE, SE_NET_EARNINGS_FACTOR, THOUSAND, ZERO,
    ceil_whole, divide, max_decimal, min_decimal, non_negative, to_decimal,
)
from calculator.exceptions import CalculationError, InvalidInput, UnsupportedTaxYear
from calculator.qbi_calculator import QBICalculator
from calculator.tax_year_config import (
    CapitalGainsBracket, TaxYearConfig, TaxYearDataProvider, get_default_provider,
)
from calculator.validation import TaxInputValidator, coerce_tax_input

logger = logging.getLogger(__name__)

# Statutory NIIT thresholds (IRC 1411); not indexed for inflation
NIIT_THRESHOLDS: Mapping[FilingStatus, Decimal] = MappingProxyType({
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MARRIED_JOINT: Decimal("250000"),
    FilingStatus.MARRIED_SEPARATE: Decimal("125000"),
    FilingStatus.HEAD_OF_HOUSEHOLD: Decimal("200000"),
})

QUARTERS = Decimal("4")


def _convert(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _convert(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert(v) for v in obj]
    return obj


@dataclass(frozen=True)
class SelfEmploymentTaxBreakdown:
    """Schedule SE: both halves of Social Security and Medicare on net earnings."""
    net_earnings: Decimal = ZERO
    social_security_tax: Decimal = ZERO
    medicare_tax: Decimal = ZERO
    total: Decimal = ZERO
    deduction: Decimal = ZERO  # half of total, an above-the-line adjustment


@dataclass(frozen=True)
class AMTBreakdown:
    """Simplified Form 6251."""
    amt_income: Decimal = ZERO
    exemption: Decimal = ZERO
    amt_base: Decimal = ZERO
    tentative_minimum_tax: Decimal = ZERO
    regular_tax: Decimal = ZERO  # ordinary + capital gains tax only
    amt: Decimal = ZERO


@dataclass(frozen=True)
class TaxBreakdown:
    """
    Result of one federal calculation.

    Amounts are unrounded Decimals except where a rule rounds (the quarterly
    estimate). ``to_dict()`` renders floats for JSON callers.
    """
    tax_year: int
    filing_status: FilingStatus

    gross_income: Decimal
    adjusted_gross_income: Decimal
    deduction_type: str  # "standard" | "itemized"
    deduction_amount: Decimal
    standard_deduction_amount: Decimal
    qbi_deduction: Decimal
    taxable_income: Decimal

    bracket_breakdown: Tuple[BracketSlice, ...]
    ordinary_income_tax: Decimal
    capital_gains_tax: Decimal
    self_employment_tax: Decimal
    niit: Decimal
    additional_medicare_tax: Decimal
    child_tax_credit: Decimal
    total_tax_before_amt: Decimal
    amt: Decimal
    total_federal_tax: Decimal

    effective_rate: Decimal
    marginal_rate: Decimal
    estimated_quarterly_payment: Decimal

    self_employment: SelfEmploymentTaxBreakdown
    amt_detail: AMTBreakdown

    def to_dict(self) -> Dict[str, Any]:
        """Convert breakdown to dict for JSON serialization."""
        return _convert(asdict(self))

    def decimal_amounts(self) -> Dict[str, Decimal]:
        """Top-level Decimal fields, keyed by name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if isinstance(getattr(self, f.name), Decimal)
        }


@dataclass(frozen=True)
class ResolvedTaxInput:
    """TaxInput with every optional amount resolved to a Decimal, once."""
    tax_year: int
    filing_status: FilingStatus
    gross_income: Decimal
    w2_income: Decimal
    self_employment_income: Decimal
    long_term_gains: Decimal
    short_term_gains: Decimal
    above_the_line_deductions: Decimal
    itemized_deductions: Decimal
    dependents: int
    additional_deduction_count: int
    qualified_business_income: Decimal
    iso_exercise_spread: Decimal
    state_tax_deducted: Decimal

    @classmethod
    def from_input(cls, tax_input: TaxInput) -> "ResolvedTaxInput":
        gains = to_decimal(tax_input.capital_gains)
        if tax_input.capital_gains_long_term:
            long_term = gains
            derived_short_term = ZERO
        else:
            long_term = ZERO
            derived_short_term = gains

        if tax_input.short_term_capital_gains is not None:
            short_term = to_decimal(tax_input.short_term_capital_gains)
        else:
            short_term = derived_short_term

        flags = (
            tax_input.age_65_or_older,
            tax_input.blind,
            tax_input.spouse_age_65_or_older,
            tax_input.spouse_blind,
        )

        return cls(
            tax_year=tax_input.tax_year,
            filing_status=FilingStatus(tax_input.filing_status),
            gross_income=to_decimal(tax_input.gross_income),
            w2_income=to_decimal(tax_input.w2_income),
            self_employment_income=to_decimal(tax_input.self_employment_income),
            long_term_gains=long_term,
            short_term_gains=short_term,
            above_the_line_deductions=to_decimal(tax_input.above_the_line_deductions),
            itemized_deductions=to_decimal(tax_input.itemized_deductions),
            dependents=tax_input.dependents,
            additional_deduction_count=sum(1 for flag in flags if flag),
            qualified_business_income=to_decimal(tax_input.qualified_business_income),
            iso_exercise_spread=to_decimal(tax_input.iso_exercise_spread),
            state_tax_deducted=to_decimal(tax_input.state_tax_deducted),
        )


def calculate_self_employment_tax(se_income: Decimal, config: TaxYearConfig) -> SelfEmploymentTaxBreakdown:
    """
    Calculate self-employment tax.

    SE Tax = Social Security (both halves, up to the wage base) + Medicare (both halves, no cap).
    Half of the total is deductible above the line.
    """
    if se_income <= 0:
        return SelfEmploymentTaxBreakdown()

    net_earnings = se_income * SE_NET_EARNINGS_FACTOR
    ss_wages = min_decimal(net_earnings, config.social_security.wage_base)
    ss_tax = ss_wages * config.social_security.tax_rate * 2
    medicare_tax = net_earnings * config.medicare.tax_rate * 2
    total = ss_tax + medicare_tax

    return SelfEmploymentTaxBreakdown(
        net_earnings=net_earnings,
        social_security_tax=ss_tax,
        medicare_tax=medicare_tax,
        total=total,
        deduction=total * HALF,
    )


def calculate_capital_gains_tax(
    gains: Decimal,
    taxable_ordinary_income: Decimal,
    brackets: Sequence[CapitalGainsBracket],
) -> Decimal:
    """
    Stack long-term gains on top of ordinary taxable income and tax each slice
    at the preferential rate for the tier it lands in.
    """
    if gains <= 0:
        return ZERO

    tax = ZERO
    remaining = gains
    income_floor = taxable_ordinary_income

    for bracket in brackets:
        if remaining <= 0:
            break
        if bracket.threshold is None:
            taxable_at_rate = remaining
        else:
            space = max_decimal(ZERO, bracket.threshold - income_floor)
            taxable_at_rate = min_decimal(remaining, space)

        tax += taxable_at_rate * bracket.rate
        remaining -= taxable_at_rate
        income_floor += taxable_at_rate

    return tax


def calculate_niit(agi: Decimal, investment_income: Decimal, filing_status: FilingStatus) -> Decimal:
    """
    Net Investment Income Tax: 3.8% of the lesser of investment income and
    AGI over the threshold. Investment income is net, so a short-term loss
    reduces it.
    """
    threshold = NIIT_THRESHOLDS[filing_status]
    if agi <= threshold or investment_income <= 0:
        return ZERO
    return min_decimal(investment_income, agi - threshold) * NIIT_RATE


def calculate_additional_medicare_tax(
    earned_income: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Decimal:
    """Additional Medicare Tax (0.9%) on wages plus SE income over the threshold."""
    threshold = config.medicare.additional_tax_threshold[filing_status]
    return non_negative(earned_income - threshold) * config.medicare.additional_tax_rate


def calculate_child_tax_credit(
    dependents: int,
    agi: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Decimal:
    """
    Child Tax Credit with the statutory step phase-out: the credit drops by
    phaseout_rate for each $1,000, or fraction of $1,000, of AGI over the start.
    """
    ctc = config.child_tax_credit
    credit = ctc.amount * dependents
    start = ctc.phaseout_start[filing_status]
    if agi > start:
        reduction = ceil_whole((agi - start) / THOUSAND) * ctc.phaseout_rate
        credit = non_negative(credit - reduction)
    return credit


def calculate_amt(
    amt_income: Decimal,
    regular_tax: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> AMTBreakdown:
    """
    Simplified AMT.

    AMT = max(0, tentative minimum tax - regular tax), where regular tax is
    ordinary plus capital gains tax only and gains get no AMT-specific rates.
    """
    params = config.amt
    phaseout = non_negative(amt_income - params.phaseout_start[filing_status])
    exemption = non_negative(params.exemption[filing_status] - phaseout * params.exemption_phaseout_rate)
    amt_base = non_negative(amt_income - exemption)

    if amt_base <= params.rate_28_threshold:
        tentative = amt_base * params.rate_26
    else:
        tentative = (
            params.rate_28_threshold * params.rate_26
            + (amt_base - params.rate_28_threshold) * params.rate_28
        )

    return AMTBreakdown(
        amt_income=amt_income,
        exemption=exemption,
        amt_base=amt_base,
        tentative_minimum_tax=tentative,
        regular_tax=regular_tax,
        amt=non_negative(tentative - regular_tax),
    )


def compute_federal_tax(tax_input: TaxInput, config: TaxYearConfig) -> TaxBreakdown:
    """
    Run the federal pipeline for one validated input.

    Pure function of (input, parameters). Step order matters: the SE tax
    deduction feeds AGI, AGI feeds NIIT and the Child Tax Credit, and the
    pre-QBI taxable income feeds both QBI and AMT.
    """
    inp = ResolvedTaxInput.from_input(tax_input)
    status = inp.filing_status

    # 1. Self-employment tax
    se = calculate_self_employment_tax(inp.self_employment_income, config)

    # 2. AGI
    agi = inp.gross_income - inp.above_the_line_deductions - se.deduction

    # 3. Standard vs itemized (ties go to standard)
    standard = (
        config.standard_deduction[status]
        + config.additional_standard_deduction[status] * inp.additional_deduction_count
    )
    use_itemized = inp.itemized_deductions > standard
    deduction = inp.itemized_deductions if use_itemized else standard

    # 4. Taxable ordinary income
    ordinary_income = inp.gross_income - inp.long_term_gains
    taxable_before_qbi = non_negative(
        ordinary_income - inp.above_the_line_deductions - se.deduction - deduction
    )

    # 5-6. QBI deduction
    qbi = QBICalculator(config.qbi_deduction_rate).calculate(
        inp.qualified_business_income, taxable_before_qbi + inp.long_term_gains
    )
    qbi_deduction = qbi.final_qbi_deduction
    adjusted_taxable_ordinary = non_negative(taxable_before_qbi - qbi_deduction)

    # 7. Ordinary income tax
    bracket_result = compute_bracket_tax(adjusted_taxable_ordinary, config.brackets_for(status))
    ordinary_tax = bracket_result.total

    # 8. Capital gains tax
    cg_tax = calculate_capital_gains_tax(
        inp.long_term_gains, adjusted_taxable_ordinary, config.capital_gains_brackets[status]
    )

    # 9. NIIT
    niit = calculate_niit(agi, inp.long_term_gains + inp.short_term_gains, status)

    # 10. Additional Medicare Tax
    additional_medicare = calculate_additional_medicare_tax(
        inp.w2_income + inp.self_employment_income, status, config
    )

    # 11. Child Tax Credit
    child_credit = calculate_child_tax_credit(inp.dependents, agi, status, config)

    # 12. Total before AMT
    total_before_amt = non_negative(
        ordinary_tax + cg_tax + se.total + niit + additional_medicare - child_credit
    )

    # 13. AMT
    amt_income = (
        taxable_before_qbi
        + inp.long_term_gains
        + inp.iso_exercise_spread
        + (inp.state_tax_deducted if use_itemized else ZERO)
    )
    amt = calculate_amt(amt_income, ordinary_tax + cg_tax, status, config)

    # 14-15. Total and quarterly estimate
    total_tax = total_before_amt + amt.amt
    quarterly = ceil_whole(total_tax / QUARTERS)

    effective_rate = divide(total_tax, inp.gross_income) if inp.gross_income > 0 else ZERO

    return TaxBreakdown(
        tax_year=inp.tax_year,
        filing_status=status,
        gross_income=inp.gross_income,
        adjusted_gross_income=agi,
        deduction_type="itemized" if use_itemized else "standard",
        deduction_amount=deduction,
        standard_deduction_amount=standard,
        qbi_deduction=qbi_deduction,
        taxable_income=adjusted_taxable_ordinary + inp.long_term_gains,
        bracket_breakdown=bracket_result.breakdown,
        ordinary_income_tax=ordinary_tax,
        capital_gains_tax=cg_tax,
        self_employment_tax=se.total,
        niit=niit,
        additional_medicare_tax=additional_medicare,
        child_tax_credit=child_credit,
        total_tax_before_amt=total_before_amt,
        amt=amt.amt,
        total_federal_tax=total_tax,
        effective_rate=effective_rate,
        marginal_rate=bracket_result.marginal_rate,
        estimated_quarterly_payment=quarterly,
        self_employment=se,
        amt_detail=amt,
    )


class FederalTaxEngine:
    """
    Federal income tax calculation engine.

    Implements the simplified federal rules:
    - Progressive tax brackets
    - Long-term capital gains preferential rates (0%, 15%, 20%)
    - Self-employment tax with Social Security wage base cap
    - Additional Medicare Tax (0.9%)
    - Net Investment Income Tax (3.8%)
    - Section 199A QBI deduction (20%, no wage/SSTB limits)
    - Child Tax Credit with step phase-out
    - Alternative Minimum Tax (26% / 28%)

    Parameter tables come from an injected TaxYearDataProvider; the engine
    holds no per-call state and is safe to share between threads.
    """

    def __init__(
        self,
        provider: Optional[TaxYearDataProvider] = None,
        validator: Optional[TaxInputValidator] = None,
    ):
        self.provider = provider or get_default_provider()
        self.validator = validator or TaxInputValidator()

    def get_config(self, tax_year: int) -> TaxYearConfig:
        config = self.provider.get(tax_year)
        if config is None:
            raise UnsupportedTaxYear(tax_year, self.provider.supported_years())
        return config

    def calculate(self, tax_input: Union[TaxInput, Mapping[str, Any]]) -> TaxBreakdown:
        """
        Execute the full federal calculation.

        Raises:
            InvalidInput: One or more fields are negative, non-finite or out of range.
            UnsupportedTaxYear: No parameter table exists for the year.
            CalculationError: The arithmetic failed or produced a non-finite amount.
        """
        tax_input = coerce_tax_input(tax_input)

        issues = self.validator.check(tax_input)
        if issues:
            raise InvalidInput(issues)

        config = self.get_config(tax_input.tax_year)

        try:
            breakdown = compute_federal_tax(tax_input, config)
        except ArithmeticError as exc:
            raise CalculationError(
                f"Federal tax calculation failed: {exc!r}",
                details={"tax_year": tax_input.tax_year},
            ) from exc

        non_finite = [name for name, value in breakdown.decimal_amounts().items() if not value.is_finite()]
        if non_finite:
            raise CalculationError(
                "Federal tax calculation produced non-finite amounts",
                details={"fields": non_finite},
            )

        logger.debug(
            f"Federal tax {breakdown.tax_year}/{breakdown.filing_status.value}: "
            f"agi={breakdown.adjusted_gross_income} taxable={breakdown.taxable_income} "
            f"total={breakdown.total_federal_tax}"
        )
        return breakdown
