from .taxpayer import FilingStatus, StateFilingStatus
from .tax_input import TaxInput, EITCInput
from .deductions import ItemizedDeductionInput, OBBBInput
from .withholding import W4Input, PayFrequency

__all__ = [
    'FilingStatus',
    'StateFilingStatus',
    'TaxInput',
    'EITCInput',
    'ItemizedDeductionInput',
    'OBBBInput',
    'W4Input',
    'PayFrequency',
]
