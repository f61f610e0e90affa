"""Tests for the Form W-4 withholding estimator."""

from decimal import Decimal

import pytest

from calculator.exceptions import InvalidInput
from calculator.w4_calculator import PAY_PERIODS, W4WithholdingCalculator
from models.taxpayer import FilingStatus
from models.withholding import PayFrequency, W4Input


@pytest.fixture
def calculator(engine):
    return W4WithholdingCalculator(engine=engine)


def make_w4(**overrides):
    data = {
        "tax_year": 2025,
        "filing_status": FilingStatus.SINGLE,
        "annual_salary": 100000,
        "pay_frequency": PayFrequency.BIWEEKLY,
    }
    data.update(overrides)
    return W4Input(**data)


def steps(result):
    return {r.step: r for r in result.recommendations}


class TestWithholdingAmounts:

    def test_biweekly(self, calculator):
        result = calculator.calculate(make_w4())
        assert result.estimated_annual_tax == Decimal("13449")
        # 13,449 / 26 = 517.27
        assert result.per_paycheck_withholding == Decimal("517")
        assert result.current_annual_withholding == Decimal("13442")
        assert result.difference == Decimal("7")
        assert result.under_withheld

    def test_monthly_over_withheld(self, calculator):
        result = calculator.calculate(make_w4(pay_frequency=PayFrequency.MONTHLY))
        assert result.pay_periods == 12
        assert result.per_paycheck_withholding == Decimal("1121")
        assert result.difference == Decimal("-3")
        assert "Step 4(c)" not in steps(result)

    def test_extra_withholding_counts_toward_annual(self, calculator):
        result = calculator.calculate(make_w4(extra_withholding=50))
        assert result.current_annual_withholding == Decimal("14742")
        assert not result.under_withheld

    @pytest.mark.parametrize("frequency,periods", [
        (PayFrequency.WEEKLY, 52),
        (PayFrequency.BIWEEKLY, 26),
        (PayFrequency.SEMIMONTHLY, 24),
        (PayFrequency.MONTHLY, 12),
    ])
    def test_pay_periods(self, frequency, periods):
        assert PAY_PERIODS[frequency] == periods

    def test_itemized_deductions_reduce_estimate(self, calculator):
        result = calculator.calculate(make_w4(deductions=30000))
        assert result.estimated_annual_tax == Decimal("10314")


class TestRecommendations:

    def test_filing_status_always_first(self, calculator):
        result = calculator.calculate(make_w4())
        assert result.recommendations[0].step == "Step 1(c)"
        assert result.recommendations[0].description.endswith("Single or Married filing separately")

    def test_married_separate_shares_single_label(self, calculator):
        result = calculator.calculate(make_w4(filing_status=FilingStatus.MARRIED_SEPARATE))
        assert "Single or Married filing separately" in result.recommendations[0].description

    def test_shortfall_spread_over_paychecks(self, calculator):
        assert steps(calculator.calculate(make_w4()))["Step 4(c)"].value == Decimal("1")

    def test_multiple_jobs(self, calculator):
        assert "Step 2" in steps(calculator.calculate(make_w4(spouse_works=True)))
        assert "Step 2" in steps(calculator.calculate(make_w4(multiple_jobs=True)))
        assert "Step 2" not in steps(calculator.calculate(make_w4()))

    def test_dependents(self, calculator):
        result = calculator.calculate(make_w4(dependents=2))
        assert steps(result)["Step 3"].value == Decimal("4000")
        assert result.estimated_annual_tax == Decimal("9049")

    def test_other_income(self, calculator):
        result = calculator.calculate(make_w4(other_income=5000))
        assert steps(result)["Step 4(a)"].value == Decimal("5000")

    def test_excess_deductions(self, calculator):
        result = calculator.calculate(make_w4(deductions=30000))
        assert steps(result)["Step 4(b)"].value == Decimal("14250")

    def test_deductions_below_standard_not_recommended(self, calculator):
        assert "Step 4(b)" not in steps(calculator.calculate(make_w4(deductions=10000)))


class TestW4Errors:

    def test_negative_salary(self, calculator):
        with pytest.raises(InvalidInput):
            calculator.calculate({
                "tax_year": 2025, "filing_status": "single", "annual_salary": -1, "pay_frequency": "weekly",
            })

    def test_unknown_frequency(self, calculator):
        with pytest.raises(InvalidInput) as exc_info:
            calculator.calculate({
                "tax_year": 2025, "filing_status": "single", "annual_salary": 1, "pay_frequency": "daily",
            })
        assert exc_info.value.fields == ["pay_frequency"]

    def test_to_dict(self, calculator):
        data = calculator.calculate(make_w4()).to_dict()
        assert data["pay_frequency"] == "biweekly"
        assert data["recommendations"][0]["value"] is None
