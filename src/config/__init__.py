"""Configuration module for the tax engine."""

from .settings import EngineSettings, get_settings
from .tax_config_loader import (
    ConfigMetadata,
    TaxConfigLoader,
    clear_config_cache,
    get_config_loader,
)

__all__ = [
    "EngineSettings",
    "get_settings",
    "ConfigMetadata",
    "TaxConfigLoader",
    "clear_config_cache",
    "get_config_loader",
]
