"""State tax data registry for case-insensitive lookup."""

from __future__ import annotations

import logging
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from config.tax_config_loader import TaxConfigLoader, get_config_loader

from calculator.state.state_tax_config import StateInfo, StateTaxType

logger = logging.getLogger(__name__)


class StateDataProvider:
    """
    Read-only lookup of StateInfo by two-letter code.

    Entries are parsed up front; lookups accept any letter case.
    """

    def __init__(self, states: Iterable[StateInfo]):
        self._states: Mapping[str, StateInfo] = MappingProxyType(
            {state.code.upper(): state for state in states}
        )

    @classmethod
    def from_loader(cls, loader: Optional[TaxConfigLoader] = None) -> "StateDataProvider":
        loader = loader or get_config_loader()
        states = [StateInfo.from_dict(code, raw) for code, raw in loader.load_state_data().items()]
        logger.info(f"Loaded state tax data for {len(states)} jurisdictions")
        return cls(states)

    def get(self, state_code: str) -> Optional[StateInfo]:
        if not isinstance(state_code, str):
            return None
        return self._states.get(state_code.strip().upper())

    def supported_states(self) -> List[str]:
        """Sorted list of all known state codes."""
        return sorted(self._states)

    def no_income_tax_states(self) -> List[str]:
        return sorted(code for code, state in self._states.items() if state.tax_type == StateTaxType.NONE)

    def __contains__(self, state_code: object) -> bool:
        return isinstance(state_code, str) and state_code.strip().upper() in self._states

    def __len__(self) -> int:
        return len(self._states)


@lru_cache(maxsize=1)
def _provider_for(loader: TaxConfigLoader) -> StateDataProvider:
    return StateDataProvider.from_loader(loader)


def get_default_state_provider() -> StateDataProvider:
    """Provider over the global loader's state_taxes.yaml, rebuilt when the loader is replaced."""
    return _provider_for(get_config_loader())
