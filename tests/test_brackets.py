"""Tests for progressive bracket evaluation."""

from decimal import Decimal

import pytest

from calculator.brackets import TaxBracket, compute_bracket_tax, validate_brackets
from models.taxpayer import FilingStatus


def table(*rows):
    return tuple(TaxBracket.from_row(row) for row in rows)


SIMPLE = table([0, 10000, 0.10], [10000, 40000, 0.20], [40000, None, 0.30])


class TestComputeBracketTax:

    def test_zero_income_has_no_tax_and_no_marginal_rate(self):
        result = compute_bracket_tax(0, SIMPLE)
        assert result.total == Decimal("0")
        assert result.marginal_rate == Decimal("0")
        assert result.breakdown == ()

    def test_income_inside_first_bracket(self):
        result = compute_bracket_tax(5000, SIMPLE)
        assert result.total == Decimal("500")
        assert result.marginal_rate == Decimal("0.1")
        assert len(result.breakdown) == 1

    def test_income_crossing_into_unbounded_bracket(self):
        result = compute_bracket_tax(50000, SIMPLE)
        # 1,000 + 6,000 + 3,000
        assert result.total == Decimal("10000")
        assert result.marginal_rate == Decimal("0.3")
        assert [s.taxable_amount for s in result.breakdown] == [
            Decimal("10000"), Decimal("30000"), Decimal("10000"),
        ]

    def test_income_exactly_at_boundary_stays_in_lower_bracket(self):
        result = compute_bracket_tax(10000, SIMPLE)
        assert result.marginal_rate == Decimal("0.1")
        assert len(result.breakdown) == 1

    @pytest.mark.parametrize("income", [1, 9999.99, 10000, 27500, 40000, 123456.78, 5_000_000])
    def test_slices_sum_to_income_and_total(self, income):
        result = compute_bracket_tax(income, SIMPLE)
        assert sum(s.taxable_amount for s in result.breakdown) == Decimal(str(income))
        assert sum(s.tax for s in result.breakdown) == result.total

    def test_tax_is_monotonic_in_income(self):
        previous = Decimal("0")
        for income in range(0, 100001, 2500):
            total = compute_bracket_tax(income, SIMPLE).total
            assert total >= previous
            previous = total

    def test_no_rounding_is_applied(self):
        result = compute_bracket_tax(Decimal("0.05"), SIMPLE)
        assert result.total == Decimal("0.005")

    def test_slice_to_dict(self):
        result = compute_bracket_tax(15000, SIMPLE)
        assert result.breakdown[1].to_dict() == {"rate": 0.2, "taxable_amount": 5000.0, "tax": 1000.0}


class TestFederalTables:

    def test_2025_single_crosses_bracket(self, config_2025):
        # 10% on 11,925 + 12% on 8,075
        result = compute_bracket_tax(20000, config_2025.brackets_for(FilingStatus.SINGLE))
        assert result.total == Decimal("2161.5")

    def test_2025_mfj_crosses_bracket(self, config_2025):
        result = compute_bracket_tax(30000, config_2025.brackets_for(FilingStatus.MARRIED_JOINT))
        assert result.total == Decimal("3123")

    def test_2024_single_85400(self, config_2024):
        result = compute_bracket_tax(85400, config_2024.brackets_for(FilingStatus.SINGLE))
        assert result.total == Decimal("13841")
        assert result.marginal_rate == Decimal("0.22")

    @pytest.mark.parametrize("status", list(FilingStatus))
    def test_bundled_tables_are_well_formed(self, provider, status):
        for year in provider.supported_years():
            assert validate_brackets(provider.get(year).brackets_for(status)) == []


class TestValidateBrackets:

    def test_well_formed_table(self):
        assert validate_brackets(SIMPLE) == []

    def test_empty_table(self):
        assert validate_brackets(()) == ["bracket table is empty"]

    def test_must_start_at_zero(self):
        problems = validate_brackets(table([100, 1000, 0.1], [1000, None, 0.2]))
        assert any("expected 0" in p for p in problems)

    def test_gap_between_brackets(self):
        problems = validate_brackets(table([0, 1000, 0.1], [1500, None, 0.2]))
        assert any("expected 1000" in p for p in problems)

    def test_rates_must_increase(self):
        problems = validate_brackets(table([0, 1000, 0.2], [1000, None, 0.1]))
        assert any("does not exceed" in p for p in problems)

    def test_only_last_bracket_unbounded(self):
        problems = validate_brackets(table([0, None, 0.1], [1000, None, 0.2]))
        assert any("not the last bracket" in p for p in problems)

    def test_last_bracket_must_be_unbounded(self):
        problems = validate_brackets(table([0, 1000, 0.1], [1000, 2000, 0.2]))
        assert "last bracket must be unbounded" in problems
