from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .taxpayer import FilingStatus


class PayFrequency(str, Enum):
    """Payroll frequency options"""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"


class W4Input(BaseModel):
    """Form W-4 withholding estimate inputs."""

    model_config = ConfigDict(frozen=True)

    tax_year: int = Field(..., strict=True)
    filing_status: FilingStatus
    annual_salary: float = Field(..., ge=0)
    pay_frequency: PayFrequency
    other_income: float = Field(default=0.0, ge=0, description="Interest, dividends, retirement income")
    deductions: float = Field(default=0.0, ge=0, description="Expected itemized deductions")
    dependents: int = Field(default=0, ge=0)
    extra_withholding: float = Field(default=0.0, ge=0, description="Extra amount withheld per paycheck")
    spouse_works: bool = False
    multiple_jobs: bool = False
