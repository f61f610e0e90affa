#!/usr/bin/env python3
"""
Example script showing how to use the tax engine programmatically
"""
import logging
import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from calculator import (
    EITCEngine,
    FederalTaxEngine,
    OBBBDeductionCalculator,
    TaxCalculator,
    W4WithholdingCalculator,
    compute_itemized_deductions,
    get_salt_cap,
)
from calculator.decimal_math import format_money
from models.tax_input import EITCInput, TaxInput
from models.taxpayer import FilingStatus
from models.withholding import PayFrequency, W4Input


def example_single_taxpayer():
    """Example: Single taxpayer with W-2 income"""
    print("Example 1: Single Taxpayer with W-2 Income")
    print("=" * 60)

    engine = FederalTaxEngine()
    breakdown = engine.calculate(TaxInput(
        tax_year=2025,
        filing_status=FilingStatus.SINGLE,
        gross_income=75000.0,
        w2_income=75000.0,
    ))

    print(f"AGI:               {format_money(breakdown.adjusted_gross_income)}")
    print(f"Deduction:         {format_money(breakdown.deduction_amount)} ({breakdown.deduction_type})")
    print(f"Taxable income:    {format_money(breakdown.taxable_income)}")
    for slice_ in breakdown.bracket_breakdown:
        print(f"  {float(slice_.rate):>5.0%} on {format_money(slice_.taxable_amount):>14} = {format_money(slice_.tax)}")
    print(f"Total federal tax: {format_money(breakdown.total_federal_tax)}")
    print(f"Effective rate:    {float(breakdown.effective_rate):.2%}")
    print(f"Quarterly payment: {format_money(breakdown.estimated_quarterly_payment)}")
    print()


def example_married_joint():
    """Example: Married filing jointly with children, combined with state tax"""
    print("Example 2: Married Filing Jointly with Children (California)")
    print("=" * 60)

    calculator = TaxCalculator()
    summary = calculator.calculate_total(
        TaxInput(
            tax_year=2025,
            filing_status=FilingStatus.MARRIED_JOINT,
            gross_income=160000.0,
            w2_income=160000.0,
            dependents=2,
        ),
        state_code="CA",
    )

    print(f"Federal tax:  {format_money(summary.total_federal_tax)}")
    print(f"  Child Tax Credit: {format_money(summary.federal.child_tax_credit)}")
    print(f"FICA:         {format_money(summary.fica.total)}")
    print(f"State tax:    {format_money(summary.state_tax)}")
    print(f"Total tax:    {format_money(summary.total_tax)}")
    print(f"Take-home:    {format_money(summary.take_home)}")
    print()


def example_itemized_deductions():
    """Example: Itemized deductions under the TY2025 SALT cap"""
    print("Example 3: Itemized Deductions")
    print("=" * 60)

    result = compute_itemized_deductions({
        "tax_year": 2025,
        "filing_status": "single",
        "agi": 515000,
        "state_local_taxes": 48000,
        "mortgage_interest": 22000,
        "charitable_donations": 8000,
    })
    print(f"SALT cap at this AGI: {format_money(get_salt_cap(2025, FilingStatus.SINGLE, 515000))}")
    print(f"Itemized total:       {format_money(result.total)}")
    print(f"Standard deduction:   {format_money(result.standard_deduction)}")
    print(f"Recommendation:       {result.recommendation} (saves {format_money(result.savings)} of deductions)")
    print()


def example_credits_and_withholding():
    """Example: EITC, OBBB deductions and W-4 guidance"""
    print("Example 4: EITC, OBBB Deductions and W-4")
    print("=" * 60)

    eitc = EITCEngine().calculate(EITCInput(
        tax_year=2024,
        filing_status=FilingStatus.SINGLE,
        earned_income=25000,
        agi=25000,
        qualifying_children=1,
    ))
    print(f"EITC: {format_money(eitc.credit)} ({eitc.phase.value})")

    obbb = OBBBDeductionCalculator().calculate({
        "tax_year": 2025,
        "filing_status": "single",
        "agi": 68000,
        "age": 67,
        "tip_income": 9000,
    })
    for item in obbb.deductions:
        print(f"  {item.name}: {format_money(item.amount)}")
    print(f"OBBB estimated savings: {format_money(obbb.estimated_savings)}")

    w4 = W4WithholdingCalculator().calculate(W4Input(
        tax_year=2025,
        filing_status=FilingStatus.SINGLE,
        annual_salary=85000,
        pay_frequency=PayFrequency.BIWEEKLY,
        other_income=4000,
    ))
    print(f"Withholding per paycheck: {format_money(w4.per_paycheck_withholding)}")
    for rec in w4.recommendations:
        print(f"  {rec.step}: {rec.description}")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)

    example_single_taxpayer()
    example_married_joint()
    example_itemized_deductions()
    example_credits_and_withholding()
