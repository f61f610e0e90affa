"""
Tax engine error types.

Every failure raised by the engine is a TaxEngineError carrying a stable
ErrorCode, a human-readable message, optional structured details and, for
input problems, one entry per offending field. Callers decide how to render
them; ``to_dict()`` gives a JSON-safe form.

Usage:
    from calculator.exceptions import InvalidInput, UnsupportedTaxYear

    try:
        breakdown = engine.calculate(tax_input)
    except UnsupportedTaxYear as exc:
        ...
    except InvalidInput as exc:
        for err in exc.field_errors:
            print(err["field"], err["message"])
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass
class ValidationIssue:
    field: str
    message: str
    severity: str = "error"  # "error" | "warning"
    code: str = "invalid"


class ErrorCode(str, Enum):
    """
    Standardized error codes for engine failures.

    Categories:
    - VALIDATION_*: Caller input that cannot be calculated
    - LOOKUP_*: Unknown tax year or state
    - CALCULATION_*: Arithmetic failure during a calculation
    - CONFIG_*: Malformed parameter tables
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_OUT_OF_RANGE = "VALIDATION_OUT_OF_RANGE"

    LOOKUP_UNSUPPORTED_TAX_YEAR = "LOOKUP_UNSUPPORTED_TAX_YEAR"
    LOOKUP_INVALID_STATE = "LOOKUP_INVALID_STATE"

    CALCULATION_ERROR = "CALCULATION_ERROR"

    CONFIG_INVALID = "CONFIG_INVALID"


class TaxEngineError(Exception):
    """
    Base exception for engine errors.

    Raise a subclass; the base carries the structured payload shared by all.
    """

    default_code = ErrorCode.CALCULATION_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[Union[ErrorCode, str]] = None,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        if code is None:
            code = self.default_code
        self.code = code if isinstance(code, ErrorCode) else ErrorCode(code)
        self.message = message
        self.details = details or {}
        self.field_errors = field_errors or []

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        payload: Dict[str, Any] = {
            "error": True,
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        if self.field_errors:
            payload["field_errors"] = list(self.field_errors)
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class InvalidInput(TaxEngineError):
    """One or more input fields failed validation.

    ``issues`` holds the ValidationIssue objects produced by the validator;
    ``field_errors`` is their serialized form.
    """

    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        issues: Sequence[ValidationIssue],
        message: Optional[str] = None,
        code: Optional[Union[ErrorCode, str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.issues = list(issues)
        field_errors = [
            {
                "field": issue.field,
                "message": issue.message,
                "code": issue.code,
            }
            for issue in self.issues
        ]
        if message is None:
            count = len(self.issues)
            message = f"Invalid input: {count} field error{'s' if count != 1 else ''}"
        super().__init__(message, code=code, details=details, field_errors=field_errors)

    @property
    def fields(self) -> List[str]:
        return [err["field"] for err in self.field_errors]


class UnsupportedTaxYear(InvalidInput):
    """No parameter table exists for the requested tax year."""

    default_code = ErrorCode.LOOKUP_UNSUPPORTED_TAX_YEAR

    def __init__(self, tax_year: Any, supported_years: Sequence[int] = ()):
        self.tax_year = tax_year
        self.supported_years = list(supported_years)
        supported = ", ".join(str(y) for y in self.supported_years) or "none"
        issue = ValidationIssue(
            field="tax_year",
            message=f"Tax year {tax_year} is not supported (supported: {supported})",
            code="unsupported",
        )
        super().__init__(
            [issue],
            message=f"Unsupported tax year: {tax_year}",
            details={"tax_year": tax_year, "supported_years": self.supported_years},
        )


class InvalidState(TaxEngineError):
    """Unknown state code."""

    default_code = ErrorCode.LOOKUP_INVALID_STATE

    def __init__(self, state_code: Any):
        self.state_code = state_code
        super().__init__(
            f"Invalid state code: {state_code}",
            details={"state_code": state_code},
            field_errors=[{"field": "state_code", "message": "Unknown state code", "code": "unknown"}],
        )


class CalculationError(TaxEngineError):
    """Arithmetic failed or produced a non-finite amount."""

    default_code = ErrorCode.CALCULATION_ERROR


class TaxConfigError(TaxEngineError):
    """A parameter table is malformed (missing keys, non-contiguous brackets)."""

    default_code = ErrorCode.CONFIG_INVALID
