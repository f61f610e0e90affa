from enum import Enum


class FilingStatus(str, Enum):
    """IRS filing status options"""
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"
    MARRIED_SEPARATE = "married_separate"
    HEAD_OF_HOUSEHOLD = "head_of_household"

    @property
    def is_joint(self) -> bool:
        return self is FilingStatus.MARRIED_JOINT


class StateFilingStatus(str, Enum):
    """States only distinguish single and married filers for deductions."""
    SINGLE = "single"
    MARRIED = "married"

    @classmethod
    def from_federal(cls, status: FilingStatus) -> "StateFilingStatus":
        """Joint filers file as married; everyone else uses the single amounts."""
        if FilingStatus(status) is FilingStatus.MARRIED_JOINT:
            return cls.MARRIED
        return cls.SINGLE
