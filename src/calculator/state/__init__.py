"""State tax calculation module."""

from calculator.state.state_tax_config import StateAmounts, StateInfo, StateTaxType
from calculator.state.state_registry import StateDataProvider, get_default_state_provider
from calculator.state.state_tax_engine import StateTaxEngine, StateTaxResult

__all__ = [
    "StateAmounts",
    "StateInfo",
    "StateTaxType",
    "StateDataProvider",
    "get_default_state_provider",
    "StateTaxEngine",
    "StateTaxResult",
]
