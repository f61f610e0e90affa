"""
Tests for the YAML configuration loader and the parsed parameter tables.
"""

import logging
import shutil
from decimal import Decimal

import pytest
import yaml

from calculator.exceptions import TaxConfigError
from calculator.state import get_default_state_provider
from calculator.tax_year_config import TaxYearConfig, TaxYearDataProvider, get_default_provider
from config.settings import get_settings
from config.tax_config_loader import CONFIG_DIR, TaxConfigLoader, clear_config_cache, get_config_loader
from models.taxpayer import FilingStatus


@pytest.fixture
def loader():
    return TaxConfigLoader(CONFIG_DIR)


def write_year(directory, year, data):
    path = directory / f"tax_year_{year}.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoader:

    def test_available_years(self, loader):
        assert loader.available_years() == [2024, 2025]

    def test_metadata_split_from_parameters(self, loader, caplog):
        with caplog.at_level(logging.INFO, logger="config.tax_config_loader"):
            config = loader.load_config(2025)
        assert "_metadata" not in config
        assert "tax_year_2025.yaml: version 2025.2, source IRS" in caplog.text

    def test_bundled_years_have_every_required_parameter(self, loader):
        for year in loader.available_years():
            assert loader._validate_config(loader.load_config(year), year) == []

    def test_missing_year_returns_empty(self, loader, caplog):
        with caplog.at_level(logging.WARNING):
            assert loader.load_config(1990) == {}
        assert "1990" in caplog.text

    def test_load_state_data_upper_cases_codes(self, loader):
        states = loader.load_state_data()
        assert len(states) == 51
        assert states["CA"]["name"] == "California"

    def test_global_loader_uses_settings_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TAX_ENGINE_TAX_PARAMETERS_DIR", str(tmp_path))
        assert get_config_loader().config_dir == tmp_path


class TestEnvOverrides:

    def test_scalar_override(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_QBI_DEDUCTION_RATE", "0.25")
        config = TaxConfigLoader(CONFIG_DIR).load_config(2025)
        assert config["qbi_deduction_rate"] == 0.25

    def test_override_flows_into_parsed_config(self, monkeypatch):
        monkeypatch.setenv("TAX_2024_QBI_DEDUCTION_RATE", "0.25")
        provider = TaxYearDataProvider.from_loader(TaxConfigLoader(CONFIG_DIR))
        assert provider.get(2024).qbi_deduction_rate == Decimal("0.25")

    def test_structured_parameter_not_overridden(self, monkeypatch, caplog):
        monkeypatch.setenv("TAX_2025_STANDARD_DEDUCTION", "1")
        with caplog.at_level(logging.WARNING):
            config = TaxConfigLoader(CONFIG_DIR).load_config(2025)
        assert isinstance(config["standard_deduction"], dict)
        assert "TAX_2025_STANDARD_DEDUCTION" in caplog.text

    def test_other_year_untouched(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_QBI_DEDUCTION_RATE", "0.25")
        assert TaxConfigLoader(CONFIG_DIR).load_config(2024)["qbi_deduction_rate"] == 0.2


class TestParsedConfig:

    def test_status_tables_accept_strings(self, provider):
        config = provider.get(2025)
        assert config.standard_deduction["single"] == config.standard_deduction[FilingStatus.SINGLE]

    def test_obbb_only_in_2025(self, provider):
        assert provider.get(2024).obbb_deductions is None
        obbb = provider.get(2025).obbb_deductions
        assert obbb.overtime.max_for(FilingStatus.MARRIED_JOINT) == Decimal("25000")
        assert obbb.tips.max_for(FilingStatus.MARRIED_JOINT) == Decimal("25000")

    def test_eitc_table_keyed_by_children(self, provider):
        table = provider.get(2024).eitc
        assert table.for_children(1).max_credit == Decimal("3995")
        assert table.investment_income_limit == Decimal("11600")

    def test_supported_years(self, provider):
        assert provider.supported_years() == [2024, 2025]
        assert 2025 in provider
        assert 2019 not in provider


class TestMalformedTables:

    def test_non_contiguous_brackets_rejected(self, tmp_path, loader):
        data = loader.load_config(2024)
        broken = dict(data)
        brackets = dict(data["ordinary_income_brackets"])
        brackets["single"] = [[0, 11600, 0.10], [12000, None, 0.12]]
        broken["ordinary_income_brackets"] = brackets
        write_year(tmp_path, 2024, broken)

        with pytest.raises(TaxConfigError) as exc_info:
            TaxYearDataProvider.from_loader(TaxConfigLoader(tmp_path))
        assert exc_info.value.details["filing_status"] == "single"

    def test_missing_table_rejected(self, loader):
        data = dict(loader.load_config(2024))
        del data["eitc"]
        with pytest.raises(TaxConfigError):
            TaxYearConfig.from_dict(2024, data)

    def test_missing_parameters_logged(self, tmp_path, caplog):
        write_year(tmp_path, 2030, {"qbi_deduction_rate": 0.2})
        with caplog.at_level(logging.WARNING):
            TaxConfigLoader(tmp_path).load_config(2030)
        assert "Missing required parameters" in caplog.text


class TestDefaultProviders:

    def test_follow_parameter_directory_after_cache_clear(self, tmp_path, monkeypatch):
        assert get_default_provider().supported_years() == [2024, 2025]
        assert len(get_default_state_provider()) == 51

        shutil.copy(CONFIG_DIR / "tax_year_2024.yaml", tmp_path)
        (tmp_path / "state_taxes.yaml").write_text(
            yaml.safe_dump({"states": {"XF": {"name": "Example", "tax_type": "flat", "top_rate": 0.05}}}),
            encoding="utf-8",
        )
        monkeypatch.setenv("TAX_ENGINE_TAX_PARAMETERS_DIR", str(tmp_path))
        get_settings.cache_clear()
        clear_config_cache()

        assert get_default_provider().supported_years() == [2024]
        assert get_default_state_provider().supported_states() == ["XF"]

    def test_reused_until_cleared(self):
        assert get_default_provider() is get_default_provider()
        assert get_default_state_provider() is get_default_state_provider()
