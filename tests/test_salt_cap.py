"""Tests for the SALT deduction cap, including the TY2025 enhanced cap phase-down."""

import logging
from decimal import Decimal

import pytest

from calculator.exceptions import InvalidInput
from calculator.salt_cap import DEFAULT_SALT_CAP, get_salt_cap
from models.taxpayer import FilingStatus


class TestSaltCap2025:

    @pytest.mark.parametrize("agi,expected", [
        (100000, "40000"),
        (500000, "40000"),
        (515000, "25000"),
        (530000, "10000"),
        (600000, "10000"),
    ])
    def test_enhanced_cap_phases_down(self, provider, agi, expected):
        assert get_salt_cap(2025, FilingStatus.SINGLE, agi, provider=provider) == Decimal(expected)

    def test_married_separate_flat_cap(self, provider):
        assert get_salt_cap(2025, FilingStatus.MARRIED_SEPARATE, 50000, provider=provider) == Decimal("20000")
        assert get_salt_cap(2025, FilingStatus.MARRIED_SEPARATE, 900000, provider=provider) == Decimal("20000")

    def test_accepts_string_status(self, provider):
        assert get_salt_cap(2025, "married_joint", 515000, provider=provider) == Decimal("25000")

    def test_cap_never_below_base(self, provider):
        for agi in range(500000, 700001, 5000):
            assert get_salt_cap(2025, FilingStatus.SINGLE, agi, provider=provider) >= Decimal("10000")


class TestSaltCap2024:

    def test_base_cap(self, provider):
        assert get_salt_cap(2024, FilingStatus.SINGLE, 515000, provider=provider) == Decimal("10000")

    def test_married_separate(self, provider):
        assert get_salt_cap(2024, FilingStatus.MARRIED_SEPARATE, 80000, provider=provider) == Decimal("5000")


class TestUnknownYear:

    def test_falls_back_to_default_with_warning(self, provider, caplog):
        with caplog.at_level(logging.WARNING, logger="calculator.salt_cap"):
            cap = get_salt_cap(2019, FilingStatus.SINGLE, 100000, provider=provider)
        assert cap == DEFAULT_SALT_CAP
        assert "2019" in caplog.text


class TestInvalidArguments:

    @pytest.mark.parametrize("status", ["widow", "married", None])
    def test_unknown_filing_status(self, provider, status):
        with pytest.raises(InvalidInput) as exc_info:
            get_salt_cap(2025, status, 100000, provider=provider)
        assert exc_info.value.fields == ["filing_status"]

    def test_status_checked_before_year_fallback(self, provider):
        with pytest.raises(InvalidInput):
            get_salt_cap(2019, "widow", 100000, provider=provider)

    def test_non_numeric_agi(self, provider):
        with pytest.raises(InvalidInput) as exc_info:
            get_salt_cap(2025, FilingStatus.SINGLE, float("nan"), provider=provider)
        assert exc_info.value.fields == ["agi"]
