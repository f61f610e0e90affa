"""
Tests for the One Big Beautiful Bill Act deductions (TY2025).

- Senior bonus with per-senior phase-out
- Tips, overtime and auto-loan interest caps and AGI limits
- Savings estimate at the marginal rate
"""

from decimal import Decimal

import pytest

from calculator.exceptions import UnsupportedTaxYear
from calculator.obbb_deductions import OBBBDeductionCalculator
from models.deductions import OBBBInput
from models.taxpayer import FilingStatus


@pytest.fixture
def calculator(provider):
    return OBBBDeductionCalculator(provider=provider)


def make_obbb(**overrides):
    data = {"tax_year": 2025, "filing_status": FilingStatus.SINGLE, "agi": 60000}
    data.update(overrides)
    return OBBBInput(**data)


def line(result, prefix):
    return next(d for d in result.deductions if d.name.startswith(prefix))


class TestSeniorBonus:

    def test_full_bonus_below_phaseout(self, calculator):
        result = calculator.calculate(make_obbb(age=70))
        senior = line(result, "Senior")
        assert senior.eligible
        assert senior.amount == Decimal("6000")

    def test_reduced_per_full_thousand_over_phaseout(self, calculator):
        result = calculator.calculate(make_obbb(age=70, agi=80500))
        # 5 full $1,000 steps over 75,000
        assert line(result, "Senior").amount == Decimal("5500")

    def test_joint_filers_both_senior(self, calculator):
        result = calculator.calculate(make_obbb(
            filing_status=FilingStatus.MARRIED_JOINT, age=66, spouse_age=68, agi=160000,
        ))
        senior = line(result, "Senior")
        assert senior.max == Decimal("12000")
        assert senior.amount == Decimal("10000")

    def test_spouse_age_ignored_unless_joint(self, calculator):
        result = calculator.calculate(make_obbb(age=50, spouse_age=70))
        assert not line(result, "Senior").eligible

    def test_fully_phased_out(self, calculator):
        result = calculator.calculate(make_obbb(age=70, agi=200000))
        assert line(result, "Senior").amount == Decimal("0")

    def test_under_65(self, calculator):
        senior = line(calculator.calculate(make_obbb(age=40)), "Senior")
        assert senior.amount == Decimal("0")
        assert senior.reason == "Must be age 65 or older"


class TestIncomeLimitedDeductions:

    def test_tips_capped(self, calculator):
        result = calculator.calculate(make_obbb(agi=100000, tip_income=30000))
        assert line(result, "Tips").amount == Decimal("25000")

    def test_tips_over_agi_limit(self, calculator):
        tips = line(calculator.calculate(make_obbb(agi=160000, tip_income=10000)), "Tips")
        assert not tips.eligible
        assert tips.amount == Decimal("0")
        assert tips.reason == "AGI exceeds $150,000.00 limit"

    @pytest.mark.parametrize("status,expected", [
        (FilingStatus.SINGLE, "12500"),
        (FilingStatus.MARRIED_JOINT, "25000"),
    ])
    def test_overtime_cap_by_status(self, calculator, status, expected):
        result = calculator.calculate(make_obbb(filing_status=status, agi=100000, overtime_pay=30000))
        assert line(result, "Overtime").amount == Decimal(expected)

    def test_auto_loan_interest(self, calculator):
        result = calculator.calculate(make_obbb(agi=90000, auto_loan_interest=12000))
        assert line(result, "Auto").amount == Decimal("10000")
        over = calculator.calculate(make_obbb(agi=120000, auto_loan_interest=12000))
        assert line(over, "Auto").amount == Decimal("0")

    def test_unclaimed_items_omitted(self, calculator):
        result = calculator.calculate(make_obbb())
        assert [d.name for d in result.deductions] == ["Senior Bonus Deduction (65+)"]


class TestTotals:

    def test_savings_at_marginal_rate(self, calculator):
        result = calculator.calculate(make_obbb(agi=100000, tip_income=10000))
        assert result.total_deduction == Decimal("10000")
        assert result.estimated_savings == Decimal("2200")

    def test_custom_marginal_rate(self, calculator):
        result = calculator.calculate(make_obbb(agi=100000, tip_income=10000, age=70, marginal_rate=0.12))
        # Senior 6,000 - 25 x 100 = 3,500; tips 10,000
        assert result.total_deduction == Decimal("13500")
        assert result.estimated_savings == Decimal("1620")

    def test_not_available_before_2025(self, calculator):
        result = calculator.calculate(make_obbb(tax_year=2024, age=70, tip_income=5000))
        assert not result.available
        assert result.deductions == ()
        assert result.total_deduction == Decimal("0")

    def test_unsupported_year(self, calculator):
        with pytest.raises(UnsupportedTaxYear):
            calculator.calculate(make_obbb(tax_year=2019))

    def test_to_dict(self, calculator):
        data = calculator.calculate(make_obbb(age=70)).to_dict()
        assert data["available"] is True
        assert data["deductions"][0]["amount"] == 6000.0
