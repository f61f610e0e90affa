"""Engine settings using Pydantic Settings.

Centralized configuration for the tax engine. Every field can be overridden
through a ``TAX_ENGINE_``-prefixed environment variable or a ``.env`` file,
e.g. ``TAX_ENGINE_MAX_INCOME=50000000``.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EngineSettings(BaseSettings):
    """Main engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="TAX_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Parameter tables
    tax_parameters_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding tax_year_<year>.yaml and state_taxes.yaml; "
                    "defaults to the bundled config/tax_parameters",
    )

    # Validation limits
    max_income: float = Field(
        default=100_000_000,
        description="Upper bound accepted for any single income amount",
    )

    @field_validator("max_income")
    @classmethod
    def validate_max_income(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("max_income must be positive")
        return v


@lru_cache
def get_settings() -> EngineSettings:
    """
    Get cached engine settings.

    Settings are loaded once and cached for the lifetime of the process.
    Call ``get_settings.cache_clear()`` to reload after changing the environment.
    """
    settings = EngineSettings()
    logger.debug(
        f"Loaded engine settings: tax_parameters_dir={settings.tax_parameters_dir} "
        f"max_income={settings.max_income:,.0f}"
    )
    return settings
