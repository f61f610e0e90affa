"""Pytest configuration and fixtures for test suite."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from calculator.engine import FederalTaxEngine
from calculator.eitc_calculator import EITCEngine
from calculator.state import StateDataProvider, StateTaxEngine
from calculator.tax_year_config import TaxYearDataProvider
from config.settings import get_settings
from config.tax_config_loader import CONFIG_DIR, TaxConfigLoader, clear_config_cache


@pytest.fixture(autouse=True)
def reset_config_globals():
    """Reset cached settings and the global loader so env changes never leak between tests."""
    get_settings.cache_clear()
    clear_config_cache()
    yield
    get_settings.cache_clear()
    clear_config_cache()


@pytest.fixture(scope="session")
def provider():
    """Federal parameter tables from the bundled YAML files."""
    return TaxYearDataProvider.from_loader(TaxConfigLoader(CONFIG_DIR))


@pytest.fixture(scope="session")
def state_provider():
    return StateDataProvider.from_loader(TaxConfigLoader(CONFIG_DIR))


@pytest.fixture
def engine(provider):
    return FederalTaxEngine(provider=provider)


@pytest.fixture
def eitc_engine(provider):
    return EITCEngine(provider=provider)


@pytest.fixture
def state_engine(state_provider):
    return StateTaxEngine(provider=state_provider)


@pytest.fixture
def config_2024(provider):
    return provider.get(2024)


@pytest.fixture
def config_2025(provider):
    return provider.get(2025)
