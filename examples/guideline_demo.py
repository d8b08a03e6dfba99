#!/usr/bin/env python3
"""
Montana Child Support Guideline Demonstration

This script walks through a guideline calculation:
1. Build the request from itemized income and deductions
2. Run Worksheets A, B and C
3. Print the worksheet trail and the Worksheet A field values

Run: python examples/guideline_demo.py [path/to/WorksheetA-template.pdf]
"""

import sys
from decimal import Decimal

from cssd_core import (
    ChildSchedule,
    GuidelineCalculator,
    GuidelineInput,
    ItemizedDeductions,
    ItemizedIncome,
    SupplementalExpenses,
    TemplateError,
    WorksheetPdfFiller,
    build_worksheet_a_fields,
)


def create_sample_input() -> GuidelineInput:
    """Two children, one shared schedule and one majority-time schedule."""
    mother_income = ItemizedIncome(wages=Decimal("58000"), other_taxable=Decimal("2000"))
    mother_deductions = ItemizedDeductions(
        federal_tax=Decimal("4200"),
        state_tax=Decimal("1900"),
        social_security=Decimal("3720"),
        medicare=Decimal("870"),
    )
    father_income = ItemizedIncome(self_employment=Decimal("41000"))
    father_deductions = ItemizedDeductions(
        federal_tax=Decimal("2600"),
        state_tax=Decimal("1200"),
        social_security=Decimal("5800"),
    )

    return GuidelineInput.from_itemized(
        mother_income,
        mother_deductions,
        father_income,
        father_deductions,
        number_of_children=2,
        supplemental_expenses=SupplementalExpenses(
            childcare=Decimal("4800"),
            health=Decimal("1200"),
        ),
        parenting_schedule=[
            ChildSchedule(mother_overnights=200, father_overnights=165),
            ChildSchedule(mother_overnights=300, father_overnights=65),
        ],
    )


def main():
    print("=" * 70)
    print("MONTANA CHILD SUPPORT GUIDELINE - DEMO")
    print("=" * 70)
    print()

    data = create_sample_input()
    result = GuidelineCalculator().calculate(data)

    print("Worksheet A:")
    for parent, ws in (("Mother", result.mother_worksheet), ("Father", result.father_worksheet)):
        print(f"  {parent}: line 3=${ws.income_after_deductions:,}  "
              f"line 5=${ws.income_available:,}  line 7=${ws.line_seven:,}")
    print(f"  Total support need: ${result.combined.total_support_need:,}")
    print()

    print("Worksheet B:")
    for child in result.children:
        branch = "shared credit" if child.credit_applies else "majority time"
        print(f"  Child {child.child_index} ({child.mother_overnights}/{child.father_overnights}, "
              f"{branch}): mother ${child.mother_annual:,}/yr, father ${child.father_annual:,}/yr")
    print()

    print(f"Payer: {result.payer.value}")
    print(f"Monthly transfer: ${result.total_monthly_transfer:,.2f}")
    print(f"Annual transfer: ${result.total_annual_transfer:,}")
    for warning in result.warnings:
        print(f"  ! {warning}")
    print()

    fields = build_worksheet_a_fields(result, "Alex Doe", "Sam Doe")
    print(f"Worksheet A fields: {len(fields)}")
    for name in ("A_L7_mother", "A_L7_father", "A_share_mother", "A_L27_mother", "A_L27_father"):
        print(f"  {name} = {fields[name]!r}")

    if len(sys.argv) > 1:
        try:
            pdf = WorksheetPdfFiller().fill_worksheet_a(result, sys.argv[1], "Alex Doe", "Sam Doe")
        except TemplateError as e:
            print(f"  - PDF skipped: {e}")
        else:
            with open("WorksheetA-Montana-Child-Support.pdf", "wb") as f:
                f.write(pdf)
            print("  - Saved: WorksheetA-Montana-Child-Support.pdf")

    print()
    print("=" * 70)
    print("Demo complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
