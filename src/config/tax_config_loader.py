"""
Tax Configuration Loader.

Loads tax parameters from YAML configuration files, enabling:
- Annual parameter updates without code changes
- Environment-specific overrides
- Per-year metadata (sources, revenue procedures, last update)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .settings import get_settings

logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path(__file__).parent / "tax_parameters"

STATE_TAXES_FILE = "state_taxes.yaml"

REQUIRED_PARAMETERS = [
    'ordinary_income_brackets',
    'standard_deduction',
    'additional_standard_deduction',
    'capital_gains_brackets',
    'social_security',
    'medicare',
    'child_tax_credit',
    'amt',
    'salt_cap',
    'eitc',
]


@dataclass
class ConfigMetadata:
    """Metadata about a configuration file."""
    version: str
    tax_year: int
    effective_date: str
    source: str  # "IRS", "state", "custom"
    irs_references: List[str] = field(default_factory=list)
    last_updated: str = ""
    updated_by: str = ""
    notes: str = ""


class TaxConfigLoader:
    """
    Loads and manages tax configuration from YAML files.

    Features:
    - Automatic file discovery by tax year
    - Environment variable overrides
    - Configuration validation
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Directory containing YAML config files.
                       Defaults to src/config/tax_parameters/
        """
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._configs: Dict[int, Dict[str, Any]] = {}
        self._state_data: Optional[Dict[str, Dict[str, Any]]] = None

    def available_years(self) -> List[int]:
        """Tax years that have a tax_year_<year>.yaml file, ascending."""
        years = []
        for path in self.config_dir.glob("tax_year_*.yaml"):
            suffix = path.stem[len("tax_year_"):]
            if suffix.isdigit():
                years.append(int(suffix))
        return sorted(years)

    def load_config(self, tax_year: int) -> Dict[str, Any]:
        """
        Load configuration for a specific tax year.

        Args:
            tax_year: The tax year to load (e.g., 2025)

        Returns:
            Dictionary of tax parameters (empty when no file exists)
        """
        if tax_year in self._configs:
            return self._configs[tax_year]

        config = self._load_from_file(tax_year)
        if config:
            config = self._apply_env_overrides(config, tax_year)
            self._validate_config(config, tax_year)

        self._configs[tax_year] = config
        return config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data or {}

    def _split_metadata(self, data: Dict[str, Any], path: Path) -> Optional[ConfigMetadata]:
        """Remove the _metadata block so it never reaches the parameter tables."""
        raw = data.pop('_metadata', None)
        if raw is None:
            logger.info(f"Loaded {path.name} (no metadata)")
            return None
        metadata = ConfigMetadata(**raw)
        logger.info(
            f"Loaded {path.name}: version {metadata.version}, source {metadata.source}, "
            f"updated {metadata.last_updated or 'n/a'}"
        )
        return metadata

    def _load_from_file(self, tax_year: int) -> Dict[str, Any]:
        """Load configuration from the year's YAML file."""
        year_file = self.config_dir / f"tax_year_{tax_year}.yaml"
        if not year_file.exists():
            logger.warning(f"No config file found for tax year {tax_year}")
            return {}

        config = self._read_yaml(year_file)
        self._split_metadata(config, year_file)
        return config

    def _apply_env_overrides(self, config: Dict[str, Any], tax_year: int) -> Dict[str, Any]:
        """Apply environment variable overrides to top-level scalar parameters."""
        # Environment variables like TAX_2025_QBI_DEDUCTION_RATE=0.2
        prefix = f"TAX_{tax_year}_"

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            param_name = key[len(prefix):].lower()
            current = config.get(param_name)
            if isinstance(current, (dict, list)):
                logger.warning(f"Ignoring env override for structured parameter: {key}")
                continue
            try:
                if '.' in value:
                    config[param_name] = float(value)
                elif value.isdigit():
                    config[param_name] = int(value)
                else:
                    config[param_name] = value
                logger.info(f"Applied env override: {param_name}={value}")
            except (ValueError, TypeError):
                logger.warning(f"Could not parse env override: {key}={value}")

        return config

    def _validate_config(self, config: Dict[str, Any], tax_year: int) -> List[str]:
        """Check configuration for required parameters. Returns the missing names."""
        missing = [p for p in REQUIRED_PARAMETERS if p not in config]
        if missing:
            logger.warning(f"Missing required parameters for {tax_year}: {missing}")
        return missing

    def load_state_data(self) -> Dict[str, Dict[str, Any]]:
        """Load per-state income tax data keyed by upper-case state code."""
        if self._state_data is not None:
            return self._state_data

        state_file = self.config_dir / STATE_TAXES_FILE
        if not state_file.exists():
            logger.warning(f"No state tax file found at {state_file}")
            self._state_data = {}
            return self._state_data

        raw = self._read_yaml(state_file)
        self._split_metadata(raw, state_file)
        states = raw.get('states') or {}
        self._state_data = {str(code).upper(): data for code, data in states.items()}
        return self._state_data


# Global singleton
_config_loader: Optional[TaxConfigLoader] = None


def get_config_loader() -> TaxConfigLoader:
    """Get the global config loader, rooted at the configured parameter directory."""
    global _config_loader
    if _config_loader is None:
        _config_loader = TaxConfigLoader(get_settings().tax_parameters_dir)
    return _config_loader


def clear_config_cache() -> None:
    """
    Drop the global loader.

    The default federal and state providers are built per loader, so they
    re-read the parameter directory from settings on their next use.
    """
    global _config_loader
    _config_loader = None
