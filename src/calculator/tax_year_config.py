from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config.tax_config_loader import TaxConfigLoader, get_config_loader
from models.taxpayer import FilingStatus

from .brackets import TaxBracket, validate_brackets
from .decimal_math import to_decimal
from .exceptions import TaxConfigError

logger = logging.getLogger(__name__)


StatusAmounts = Mapping[FilingStatus, Decimal]
BracketTable = Mapping[FilingStatus, Tuple[TaxBracket, ...]]


def _status_amounts(raw: Mapping[str, Any], name: str) -> StatusAmounts:
    missing = [s.value for s in FilingStatus if s.value not in raw]
    if missing:
        raise TaxConfigError(f"{name} is missing filing statuses: {missing}")
    return MappingProxyType({s: to_decimal(raw[s.value]) for s in FilingStatus})


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


@dataclass(frozen=True)
class CapitalGainsBracket:
    """Preferential rate applied to gains while total taxable income stays below threshold."""
    rate: Decimal
    threshold: Optional[Decimal]  # None = unbounded


@dataclass(frozen=True)
class SocialSecurityParameters:
    tax_rate: Decimal
    wage_base: Decimal


@dataclass(frozen=True)
class MedicareParameters:
    tax_rate: Decimal
    additional_tax_rate: Decimal
    additional_tax_threshold: StatusAmounts


@dataclass(frozen=True)
class ChildTaxCreditParameters:
    amount: Decimal
    phaseout_rate: Decimal  # dollars per $1,000 (or part) of AGI over the start
    phaseout_start: StatusAmounts


@dataclass(frozen=True)
class AMTParameters:
    exemption: StatusAmounts
    phaseout_start: StatusAmounts
    rate_28_threshold: Decimal
    rate_26: Decimal = Decimal("0.26")
    rate_28: Decimal = Decimal("0.28")
    exemption_phaseout_rate: Decimal = Decimal("0.25")


@dataclass(frozen=True)
class SaltCapParameters:
    base: Decimal
    mfs: Decimal
    enhanced_cap: Optional[Decimal] = None
    enhanced_agi_threshold: Optional[Decimal] = None

    @property
    def has_enhanced_cap(self) -> bool:
        return bool(self.enhanced_cap) and bool(self.enhanced_agi_threshold)


@dataclass(frozen=True)
class SeniorBonusParameters:
    amount: Decimal
    phaseout_single: Decimal
    phaseout_mfj: Decimal


@dataclass(frozen=True)
class IncomeLimitedDeduction:
    """A capped deduction that is lost entirely once AGI exceeds the limit."""
    max_single: Decimal
    max_mfj: Decimal
    agi_limit_single: Decimal
    agi_limit_mfj: Decimal

    def max_for(self, status: FilingStatus) -> Decimal:
        return self.max_mfj if status == FilingStatus.MARRIED_JOINT else self.max_single

    def agi_limit_for(self, status: FilingStatus) -> Decimal:
        return self.agi_limit_mfj if status == FilingStatus.MARRIED_JOINT else self.agi_limit_single


@dataclass(frozen=True)
class OBBBDeductionParameters:
    senior_bonus: SeniorBonusParameters
    tips: IncomeLimitedDeduction
    overtime: IncomeLimitedDeduction
    auto_loan_interest: IncomeLimitedDeduction


@dataclass(frozen=True)
class EITCParameters:
    """EITC schedule for one qualifying-children bucket."""
    credit_rate: Decimal
    earned_income_threshold: Decimal
    max_credit: Decimal
    phaseout_rate: Decimal
    phaseout_start: Decimal
    phaseout_start_mfj: Decimal
    completion_threshold: Decimal


@dataclass(frozen=True)
class EITCTable:
    investment_income_limit: Decimal
    by_qualifying_children: Mapping[int, EITCParameters]

    def for_children(self, children: int) -> EITCParameters:
        return self.by_qualifying_children[children]


def _parse_capital_gains(rows: Iterable[List[Any]], status: FilingStatus) -> Tuple[CapitalGainsBracket, ...]:
    brackets = tuple(
        CapitalGainsBracket(rate=to_decimal(rate), threshold=_optional_decimal(threshold))
        for rate, threshold in rows
    )
    problems = []
    if not brackets or brackets[-1].threshold is not None:
        problems.append("last capital gains bracket must be unbounded")
    bounded = [b.threshold for b in brackets if b.threshold is not None]
    if any(b <= a for a, b in zip(bounded, bounded[1:])):
        problems.append("capital gains thresholds must strictly increase")
    if any(b.rate <= a.rate for a, b in zip(brackets, brackets[1:])):
        problems.append("capital gains rates must strictly increase")
    if problems:
        raise TaxConfigError(
            f"Invalid capital gains brackets for {status.value}",
            details={"filing_status": status.value, "problems": problems},
        )
    return brackets


def _parse_income_limited(raw: Mapping[str, Any]) -> IncomeLimitedDeduction:
    return IncomeLimitedDeduction(
        max_single=to_decimal(raw.get("max_single", raw.get("max"))),
        max_mfj=to_decimal(raw.get("max_mfj", raw.get("max"))),
        agi_limit_single=to_decimal(raw["agi_limit_single"]),
        agi_limit_mfj=to_decimal(raw["agi_limit_mfj"]),
    )


@dataclass(frozen=True)
class TaxYearConfig:
    """
    Parameter tables for a given tax year.

    NOTE: Values here should be reviewed annually against IRS published figures.
    They live in config/tax_parameters/tax_year_<year>.yaml so updates stay
    localized; this class only parses and validates them.
    """

    tax_year: int
    ordinary_income_brackets: BracketTable
    standard_deduction: StatusAmounts
    additional_standard_deduction: StatusAmounts
    capital_gains_brackets: Mapping[FilingStatus, Tuple[CapitalGainsBracket, ...]]
    social_security: SocialSecurityParameters
    medicare: MedicareParameters
    child_tax_credit: ChildTaxCreditParameters
    amt: AMTParameters
    salt_cap: SaltCapParameters
    eitc: EITCTable
    qbi_deduction_rate: Decimal = Decimal("0.20")
    obbb_deductions: Optional[OBBBDeductionParameters] = None

    def brackets_for(self, status: FilingStatus) -> Tuple[TaxBracket, ...]:
        return self.ordinary_income_brackets[FilingStatus(status)]

    @classmethod
    def from_dict(cls, tax_year: int, data: Mapping[str, Any]) -> "TaxYearConfig":
        """
        Build a config from a loaded YAML mapping.

        Raises:
            TaxConfigError: If a required table is missing or a bracket table
                is not contiguous and monotonic.
        """
        try:
            return cls._from_dict(tax_year, data)
        except TaxConfigError:
            raise
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise TaxConfigError(
                f"Malformed tax parameters for {tax_year}: {exc!r}",
                details={"tax_year": tax_year},
            ) from exc

    @classmethod
    def _from_dict(cls, tax_year: int, data: Mapping[str, Any]) -> "TaxYearConfig":
        brackets: Dict[FilingStatus, Tuple[TaxBracket, ...]] = {}
        for status in FilingStatus:
            rows = data["ordinary_income_brackets"][status.value]
            table = tuple(TaxBracket.from_row(row) for row in rows)
            problems = validate_brackets(table)
            if problems:
                raise TaxConfigError(
                    f"Invalid {tax_year} brackets for {status.value}",
                    details={"tax_year": tax_year, "filing_status": status.value, "problems": problems},
                )
            brackets[status] = table

        capital_gains = {
            status: _parse_capital_gains(data["capital_gains_brackets"][status.value], status)
            for status in FilingStatus
        }

        ss = data["social_security"]
        medicare = data["medicare"]
        ctc = data["child_tax_credit"]
        amt = data["amt"]
        salt = data["salt_cap"]
        eitc = data["eitc"]

        eitc_rows = eitc["by_qualifying_children"]
        eitc_table = EITCTable(
            investment_income_limit=to_decimal(eitc["investment_income_limit"]),
            by_qualifying_children=MappingProxyType({
                children: EITCParameters(**{k: to_decimal(v) for k, v in eitc_rows[children].items()})
                for children in range(4)
            }),
        )

        obbb = None
        if data.get("obbb_deductions"):
            raw = data["obbb_deductions"]
            senior = raw["senior_bonus"]
            obbb = OBBBDeductionParameters(
                senior_bonus=SeniorBonusParameters(
                    amount=to_decimal(senior["amount"]),
                    phaseout_single=to_decimal(senior["phaseout_single"]),
                    phaseout_mfj=to_decimal(senior["phaseout_mfj"]),
                ),
                tips=_parse_income_limited(raw["tips"]),
                overtime=_parse_income_limited(raw["overtime"]),
                auto_loan_interest=_parse_income_limited(raw["auto_loan_interest"]),
            )

        return cls(
            tax_year=tax_year,
            ordinary_income_brackets=MappingProxyType(brackets),
            standard_deduction=_status_amounts(data["standard_deduction"], "standard_deduction"),
            additional_standard_deduction=_status_amounts(
                data["additional_standard_deduction"], "additional_standard_deduction"
            ),
            capital_gains_brackets=MappingProxyType(capital_gains),
            social_security=SocialSecurityParameters(
                tax_rate=to_decimal(ss["tax_rate"]),
                wage_base=to_decimal(ss["wage_base"]),
            ),
            medicare=MedicareParameters(
                tax_rate=to_decimal(medicare["tax_rate"]),
                additional_tax_rate=to_decimal(medicare["additional_tax_rate"]),
                additional_tax_threshold=_status_amounts(
                    medicare["additional_tax_threshold"], "medicare.additional_tax_threshold"
                ),
            ),
            child_tax_credit=ChildTaxCreditParameters(
                amount=to_decimal(ctc["amount"]),
                phaseout_rate=to_decimal(ctc["phaseout_rate"]),
                phaseout_start=_status_amounts(ctc["phaseout_start"], "child_tax_credit.phaseout_start"),
            ),
            amt=AMTParameters(
                exemption=_status_amounts(amt["exemption"], "amt.exemption"),
                phaseout_start=_status_amounts(amt["phaseout_start"], "amt.phaseout_start"),
                rate_28_threshold=to_decimal(amt["rate_28_threshold"]),
            ),
            salt_cap=SaltCapParameters(
                base=to_decimal(salt["base"]),
                mfs=to_decimal(salt["mfs"]),
                enhanced_cap=_optional_decimal(salt.get("enhanced_cap")),
                enhanced_agi_threshold=_optional_decimal(salt.get("enhanced_agi_threshold")),
            ),
            eitc=eitc_table,
            qbi_deduction_rate=to_decimal(data.get("qbi_deduction_rate", "0.20")),
            obbb_deductions=obbb,
        )


class TaxYearDataProvider:
    """
    Read-only lookup of TaxYearConfig by year.

    Configs are parsed when the provider is built, so a malformed table fails
    at startup rather than in the middle of a calculation.
    """

    def __init__(self, configs: Mapping[int, TaxYearConfig]):
        self._configs: Mapping[int, TaxYearConfig] = MappingProxyType(dict(configs))

    @classmethod
    def from_loader(cls, loader: Optional[TaxConfigLoader] = None) -> "TaxYearDataProvider":
        """Parse every tax_year_<year>.yaml the loader can find."""
        loader = loader or get_config_loader()
        configs = {}
        for year in loader.available_years():
            configs[year] = TaxYearConfig.from_dict(year, loader.load_config(year))
        logger.info(f"Loaded tax parameters for years: {sorted(configs)}")
        return cls(configs)

    @classmethod
    def from_configs(cls, *configs: TaxYearConfig) -> "TaxYearDataProvider":
        return cls({c.tax_year: c for c in configs})

    def get(self, tax_year: int) -> Optional[TaxYearConfig]:
        return self._configs.get(tax_year)

    def supported_years(self) -> List[int]:
        return sorted(self._configs)

    def __contains__(self, tax_year: object) -> bool:
        return tax_year in self._configs


@lru_cache(maxsize=1)
def _provider_for(loader: TaxConfigLoader) -> TaxYearDataProvider:
    return TaxYearDataProvider.from_loader(loader)


def get_default_provider() -> TaxYearDataProvider:
    """
    Provider over the global loader's YAML tables.

    Built once per loader; ``clear_config_cache()`` replaces the loader, so the
    next call re-reads the parameter directory from settings.
    """
    return _provider_for(get_config_loader())
