from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .taxpayer import FilingStatus


class ItemizedDeductionInput(BaseModel):
    """Itemized deduction details (Schedule A)"""

    model_config = ConfigDict(frozen=True)

    tax_year: int = Field(..., strict=True)
    filing_status: FilingStatus
    agi: float = Field(..., ge=0, description="AGI, for the medical floor and the SALT cap phase-down")

    medical_expenses: float = Field(default=0.0, ge=0, description="Unreimbursed medical expenses")
    state_local_taxes: float = Field(default=0.0, ge=0, description="State/local income and property taxes paid")
    mortgage_interest: float = Field(default=0.0, ge=0)
    charitable_donations: float = Field(default=0.0, ge=0)
    other_itemized: float = Field(default=0.0, ge=0)

    # Only used to build the standard deduction for comparison
    age_65_or_older: bool = False
    blind: bool = False


class OBBBInput(BaseModel):
    """
    One Big Beautiful Bill Act deductions (TY2025-2028).

    Tips and overtime remain subject to payroll taxes; only income tax is reduced.
    """

    model_config = ConfigDict(frozen=True)

    tax_year: int = Field(..., strict=True)
    filing_status: FilingStatus
    agi: float = Field(..., ge=0)
    age: Optional[int] = Field(default=None, ge=0, le=120, description="Taxpayer age (senior bonus)")
    spouse_age: Optional[int] = Field(default=None, ge=0, le=120, description="Spouse age, joint filers only")
    tip_income: float = Field(default=0.0, ge=0, description="Tips from a qualifying occupation")
    overtime_pay: float = Field(default=0.0, ge=0, description="Overtime premium pay")
    auto_loan_interest: float = Field(default=0.0, ge=0, description="Interest on a qualifying new-vehicle loan")
    marginal_rate: float = Field(default=0.22, ge=0, le=1, description="Rate used for the savings estimate")
