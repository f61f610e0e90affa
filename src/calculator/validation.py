"""
Input validation for the tax engines.

Catches unreasonable inputs before they produce misleading results. Checks
return ValidationIssue objects rather than raising, so a caller sees every
problem at once; the engines raise a single InvalidInput carrying all of them.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from config.settings import get_settings
from models.tax_input import EITCInput, TaxInput
from models.taxpayer import FilingStatus, StateFilingStatus

from .exceptions import InvalidInput, ValidationIssue

ModelT = TypeVar("ModelT", bound=BaseModel)

_STATE_CODE_RE = re.compile(r"^[A-Za-z]{2}$")

_FEDERAL_STATUSES = {status.value: status for status in FilingStatus}
_STATE_STATUSES = {status.value: status for status in StateFilingStatus}

# TaxInput amounts that must be non-negative
NON_NEGATIVE_AMOUNTS = (
    "gross_income",
    "w2_income",
    "self_employment_income",
    "above_the_line_deductions",
    "itemized_deductions",
    "qualified_business_income",
    "iso_exercise_spread",
    "state_tax_deducted",
)

# Gains may be net losses; only their magnitude is bounded
SIGNED_AMOUNTS = (
    "capital_gains",
    "short_term_capital_gains",
)


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    return math.isfinite(value)


def validate_income(
    value: Any,
    field: str,
    max_income: Optional[float] = None,
    allow_negative: bool = False,
) -> Optional[ValidationIssue]:
    """Check one monetary amount: finite, non-negative (unless allowed), not absurdly large."""
    limit = max_income if max_income is not None else get_settings().max_income

    if not _is_finite_number(value):
        return ValidationIssue(field, f"{field} must be a finite number")
    if value < 0 and not allow_negative:
        return ValidationIssue(field, f"{field} cannot be negative", code="negative")
    if abs(value) > limit:
        return ValidationIssue(
            field, f"{field} exceeds ${limit:,.0f}, please verify", code="out_of_range"
        )
    return None


def validate_state_code(code: Any) -> Optional[ValidationIssue]:
    if not isinstance(code, str) or len(code) != 2:
        return ValidationIssue("state_code", "State code must be exactly 2 characters")
    if not _STATE_CODE_RE.match(code):
        return ValidationIssue("state_code", "State code must be letters only")
    return None


def resolve_filing_status(value: Any) -> Tuple[Optional[FilingStatus], Optional[ValidationIssue]]:
    """Parse a federal filing status, or report it as a filing_status issue."""
    if isinstance(value, FilingStatus):
        return value, None
    if isinstance(value, str) and value in _FEDERAL_STATUSES:
        return _FEDERAL_STATUSES[value], None
    options = ", ".join(_FEDERAL_STATUSES)
    return None, ValidationIssue("filing_status", f"Unknown filing status {value!r}. Use one of: {options}")


def resolve_state_filing_status(value: Any) -> Tuple[Optional[StateFilingStatus], Optional[ValidationIssue]]:
    """
    Parse a state filing status.

    Federal statuses are accepted too and collapse to the state's single or
    married amounts, so callers can pass the status from their return as is.
    """
    if isinstance(value, StateFilingStatus):
        return value, None
    if isinstance(value, FilingStatus):
        return StateFilingStatus.from_federal(value), None
    if isinstance(value, str):
        if value in _STATE_STATUSES:
            return _STATE_STATUSES[value], None
        if value in _FEDERAL_STATUSES:
            return StateFilingStatus.from_federal(_FEDERAL_STATUSES[value]), None
    return None, ValidationIssue(
        "filing_status", f"Unknown filing status {value!r}. Use single or married, or a federal filing status"
    )


def collect(*checks: Optional[ValidationIssue]) -> List[ValidationIssue]:
    """Run multiple validations and return all issues."""
    return [c for c in checks if c is not None]


class TaxInputValidator:
    """
    Range checks for engine inputs.

    The tax year is held to a strict integer by the input models and its
    support is left to the parameter provider, so that a missing table
    surfaces as UnsupportedTaxYear.
    """

    def __init__(self, max_income: Optional[float] = None):
        self.max_income = max_income if max_income is not None else get_settings().max_income

    def check(self, tax_input: TaxInput) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []

        for field in NON_NEGATIVE_AMOUNTS:
            issue = validate_income(getattr(tax_input, field), field, self.max_income)
            if issue:
                issues.append(issue)

        for field in SIGNED_AMOUNTS:
            value = getattr(tax_input, field)
            if value is None:
                continue
            issue = validate_income(value, field, self.max_income, allow_negative=True)
            if issue:
                issues.append(issue)

        if tax_input.dependents < 0:
            issues.append(ValidationIssue("dependents", "dependents cannot be negative", code="negative"))

        return issues

    def check_eitc(self, eitc_input: EITCInput) -> List[ValidationIssue]:
        issues = collect(
            validate_income(eitc_input.earned_income, "earned_income", self.max_income, allow_negative=True),
            validate_income(eitc_input.agi, "agi", self.max_income, allow_negative=True),
            validate_income(eitc_input.investment_income, "investment_income", self.max_income, allow_negative=True),
        )
        if eitc_input.qualifying_children < 0:
            issues.append(
                ValidationIssue("qualifying_children", "qualifying_children cannot be negative", code="negative")
            )
        return issues


def issues_from_validation_error(exc: ValidationError) -> List[ValidationIssue]:
    """Translate a pydantic ValidationError into field-addressable issues."""
    issues = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        issues.append(ValidationIssue(field, err.get("msg", "Invalid value"), code=err.get("type", "invalid")))
    return issues


def coerce_model(model_cls: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """
    Accept either a model instance or a plain mapping.

    Raises:
        InvalidInput: If the mapping cannot be parsed into the model.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(issues_from_validation_error(exc)) from exc


def coerce_tax_input(data: Union[TaxInput, Mapping[str, Any]]) -> TaxInput:
    return coerce_model(TaxInput, data)
