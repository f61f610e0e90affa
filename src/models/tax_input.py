"""
Caller-facing input models for the federal pipeline and the EITC engine.

Amounts are plain floats here; range checks (negative, non-finite, too large)
are the job of calculator.validation so that every violation is reported in
one InvalidInput instead of failing on the first.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .taxpayer import FilingStatus


class TaxInput(BaseModel):
    """Everything the federal pipeline needs for one return."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tax_year: int = Field(..., strict=True, description="Tax year, e.g. 2025; strings and floats are rejected")
    filing_status: FilingStatus
    gross_income: float = Field(..., description="Total gross income, including wages, SE income and gains")

    w2_income: float = Field(default=0.0, description="W-2 wages (Additional Medicare Tax base)")
    self_employment_income: float = Field(default=0.0, description="Net self-employment profit")
    capital_gains: float = Field(default=0.0, description="Capital gains included in gross income")
    capital_gains_long_term: bool = Field(
        default=True,
        description="Treat capital_gains as long-term (preferential rates); False taxes them as ordinary",
    )
    short_term_capital_gains: Optional[float] = Field(
        default=None,
        description="Short-term gains or losses for NIIT; derived from capital_gains when omitted",
    )

    above_the_line_deductions: float = Field(default=0.0, description="Adjustments to income")
    itemized_deductions: float = Field(default=0.0, description="Total Schedule A deductions")

    dependents: int = Field(default=0, description="Qualifying children for the Child Tax Credit")
    age_65_or_older: bool = False
    blind: bool = False
    spouse_age_65_or_older: bool = False
    spouse_blind: bool = False

    qualified_business_income: float = Field(default=0.0, description="Section 199A QBI")
    iso_exercise_spread: float = Field(default=0.0, description="ISO bargain element (AMT preference)")
    state_tax_deducted: float = Field(
        default=0.0,
        description="State/local tax included in itemized deductions (added back for AMT)",
    )


class EITCInput(BaseModel):
    """Inputs to the Earned Income Tax Credit engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tax_year: int = Field(..., strict=True)
    filing_status: FilingStatus
    earned_income: float = Field(..., description="Wages plus net self-employment earnings")
    agi: float = Field(..., description="Adjusted gross income")
    qualifying_children: int = Field(default=0, description="Clamped to 0-3 by the engine")
    investment_income: float = Field(default=0.0, description="Interest, dividends, and net gains")
