from .exceptions import (
    CalculationError,
    ErrorCode,
    InvalidInput,
    InvalidState,
    TaxConfigError,
    TaxEngineError,
    UnsupportedTaxYear,
    ValidationIssue,
)
from .brackets import BracketSlice, BracketTaxResult, TaxBracket, compute_bracket_tax
from .tax_year_config import TaxYearConfig, TaxYearDataProvider, get_default_provider
from .validation import TaxInputValidator
from .engine import FederalTaxEngine, TaxBreakdown
from .eitc_calculator import EITCEngine, EITCPhase, EITCResult
from .salt_cap import get_salt_cap
from .qbi_calculator import QBICalculator, QBIBreakdown
from .itemized_deductions import ItemizedDeductionBreakdown, compute_itemized_deductions
from .obbb_deductions import OBBBDeductionCalculator, OBBBDeductionResult
from .w4_calculator import W4WithholdingCalculator, W4Result
from .tax_calculator import TaxCalculator, TotalTaxSummary
from .state import StateDataProvider, StateInfo, StateTaxEngine, StateTaxResult

__all__ = [
    "CalculationError",
    "ErrorCode",
    "InvalidInput",
    "InvalidState",
    "TaxConfigError",
    "TaxEngineError",
    "UnsupportedTaxYear",
    "ValidationIssue",
    "BracketSlice",
    "BracketTaxResult",
    "TaxBracket",
    "compute_bracket_tax",
    "TaxYearConfig",
    "TaxYearDataProvider",
    "get_default_provider",
    "TaxInputValidator",
    "FederalTaxEngine",
    "TaxBreakdown",
    "EITCEngine",
    "EITCPhase",
    "EITCResult",
    "get_salt_cap",
    "QBICalculator",
    "QBIBreakdown",
    "ItemizedDeductionBreakdown",
    "compute_itemized_deductions",
    "OBBBDeductionCalculator",
    "OBBBDeductionResult",
    "W4WithholdingCalculator",
    "W4Result",
    "TaxCalculator",
    "TotalTaxSummary",
    "StateDataProvider",
    "StateInfo",
    "StateTaxEngine",
    "StateTaxResult",
]
