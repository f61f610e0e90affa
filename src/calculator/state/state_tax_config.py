"""State tax configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from calculator.brackets import TaxBracket, validate_brackets
from calculator.decimal_math import ZERO, to_decimal
from calculator.exceptions import TaxConfigError
from models.taxpayer import StateFilingStatus


class StateTaxType(str, Enum):
    NONE = "none"
    FLAT = "flat"
    GRADUATED = "graduated"


@dataclass(frozen=True)
class StateAmounts:
    """A per-status amount; states only distinguish single and married."""
    single: Decimal
    married: Decimal

    def for_status(self, status: StateFilingStatus) -> Decimal:
        return self.married if StateFilingStatus(status) == StateFilingStatus.MARRIED else self.single

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> Optional["StateAmounts"]:
        if not raw:
            return None
        return cls(single=to_decimal(raw["single"]), married=to_decimal(raw["married"]))


@dataclass(frozen=True)
class StateInfo:
    """
    Income tax data for one state.

    Graduated states without a bracket table are taxed at top_rate on the
    whole adjusted income. Local income taxes are flagged, not computed.
    """

    code: str
    name: str
    tax_type: StateTaxType
    top_rate: Decimal
    brackets: Optional[Tuple[TaxBracket, ...]] = None
    standard_deduction: Optional[StateAmounts] = None
    personal_exemption: Optional[StateAmounts] = None
    salt_deduction_on_federal: bool = True
    local_taxes: bool = False
    notes: Optional[str] = None

    def deduction_for(self, status: StateFilingStatus) -> Decimal:
        """Standard deduction plus personal exemption, where the state has them."""
        total = ZERO
        if self.standard_deduction:
            total += self.standard_deduction.for_status(status)
        if self.personal_exemption:
            total += self.personal_exemption.for_status(status)
        return total

    @property
    def has_income_tax(self) -> bool:
        return self.tax_type != StateTaxType.NONE

    @classmethod
    def from_dict(cls, code: str, raw: Mapping[str, Any]) -> "StateInfo":
        """
        Build from one entry of state_taxes.yaml.

        Raises:
            TaxConfigError: If the entry is malformed or its brackets are not contiguous.
        """
        try:
            brackets = None
            if raw.get("brackets"):
                brackets = tuple(TaxBracket.from_row(row) for row in raw["brackets"])
                problems = validate_brackets(brackets)
                if problems:
                    raise TaxConfigError(
                        f"Invalid brackets for state {code}",
                        details={"state_code": code, "problems": problems},
                    )

            return cls(
                code=code.upper(),
                name=raw["name"],
                tax_type=StateTaxType(raw["tax_type"]),
                top_rate=to_decimal(raw.get("top_rate", 0)),
                brackets=brackets,
                standard_deduction=StateAmounts.from_dict(raw.get("standard_deduction")),
                personal_exemption=StateAmounts.from_dict(raw.get("personal_exemption")),
                salt_deduction_on_federal=bool(raw.get("salt_deduction_on_federal", True)),
                local_taxes=bool(raw.get("local_taxes", False)),
                notes=raw.get("notes"),
            )
        except TaxConfigError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise TaxConfigError(
                f"Malformed state tax entry {code}: {exc!r}",
                details={"state_code": code},
            ) from exc
