"""Map guideline results onto CSSD worksheet template fields.

Field names follow the fillable Worksheet A template (``A_L1i_mother``,
``A_L8_combined`` ...) and a per-child Worksheet B layout
(``B_C1_L1_mother`` ...). Every value is a display string. Lines that the
worksheet instructions say to skip map to ``""`` rather than ``"0"``.
"""

from decimal import Decimal
from typing import Any, Optional

from .guideline_tables import CREDIT_FACTOR, SHARED_PARENTING_THRESHOLD
from .models import FinalResult, Payer, PerChildResult
from .rounding import format_dollars

PARENTS = ("mother", "father")


def _dollars(value: Optional[Any]) -> str:
    """Format an amount, leaving skipped (None) lines blank."""
    if value is None:
        return ""
    return format_dollars(value)


def _percent(share: Decimal) -> str:
    return f"{share * 100:.1f}"


def build_worksheet_a_fields(
    result: FinalResult,
    parent_a_name: str = "Parent A",
    parent_b_name: str = "Parent B",
) -> dict[str, str]:
    """Build Worksheet A field values from a calculation result.

    Parent A is entered in the mother column and Parent B in the father
    column of the form.

    Args:
        result: Completed guideline calculation
        parent_a_name: Name printed in the mother column header
        parent_b_name: Name printed in the father column header

    Returns:
        Mapping of template field name to display string
    """
    combined = result.combined
    supplements = result.request.supplemental_expenses

    fields: dict[str, str] = {
        "A_parent_mother_name": parent_a_name,
        "A_parent_father_name": parent_b_name,
    }

    worksheets = {"mother": result.mother_worksheet, "father": result.father_worksheet}
    for parent in PARENTS:
        ws = worksheets[parent]
        fields[f"A_L1i_{parent}"] = _dollars(ws.total_income)
        fields[f"A_L2l_{parent}"] = _dollars(ws.total_deductions)
        fields[f"A_L3_{parent}"] = _dollars(ws.income_after_deductions)
        fields[f"A_L4_{parent}"] = _dollars(ws.personal_allowance)
        fields[f"A_L5_{parent}"] = _dollars(ws.income_available)
        fields[f"A_L6_{parent}"] = _dollars(ws.minimum_floor)
        fields[f"A_L7_{parent}"] = _dollars(ws.line_seven)

    fields["A_L8_combined"] = _dollars(combined.combined_line_seven)
    fields["A_share_mother"] = _percent(combined.mother.share)
    fields["A_share_father"] = _percent(combined.father.share)
    fields["A_L10_children"] = str(combined.number_of_children)
    fields["A_L11_primary_allowance"] = _dollars(combined.primary_allowance)

    fields["A_L12a_childcare"] = _dollars(supplements.childcare)
    fields["A_L12b_health"] = _dollars(supplements.health)
    fields["A_L12c_unreimbursed_med"] = _dollars(supplements.uninsured_medical)
    fields["A_L12d_other"] = _dollars(supplements.other)
    fields["A_L12e_total"] = _dollars(combined.total_supplements)
    fields["A_L13_total"] = _dollars(combined.primary_allowance + combined.total_supplements)
    fields["A_total_support_need"] = _dollars(combined.total_support_need)

    for parent in PARENTS:
        lines = getattr(combined, parent)
        fields[f"A_L14_{parent}"] = _dollars(lines.primary_share + lines.supplement_share)
        # SOLA lines are blank when skipped; 16, 18a and 18b are otherwise 0
        sola_zero = "" if lines.sola is None else "0"
        fields[f"A_L15_{parent}"] = _dollars(lines.income_for_sola)
        fields[f"A_L16_{parent}"] = sola_zero
        fields[f"A_L17_{parent}"] = _dollars(lines.income_for_sola)
        fields[f"A_L18a_{parent}"] = sola_zero
        fields[f"A_L18b_{parent}"] = sola_zero
        fields[f"A_L19_{parent}"] = _dollars(lines.income_for_sola)
        fields[f"A_L20_{parent}"] = _dollars(lines.sola)
        fields[f"A_L21_{parent}"] = _dollars(lines.gross_obligation)
        fields[f"A_L22_{parent}"] = _dollars(lines.credit)
        fields[f"A_L23_{parent}"] = _dollars(lines.net_obligation)
        fields[f"A_L24_{parent}"] = _dollars(lines.net_obligation)

    # Line 27 only for the parent who pays
    fields["A_L27_mother"] = ""
    fields["A_L27_father"] = ""
    if result.payer == Payer.MOTHER:
        fields["A_L27_mother"] = _dollars(result.total_monthly_transfer)
    elif result.payer == Payer.FATHER:
        fields["A_L27_father"] = _dollars(result.total_monthly_transfer)

    return fields


def _child_fields(child: PerChildResult) -> dict[str, str]:
    prefix = f"B_C{child.child_index}"
    fields: dict[str, str] = {}

    for parent in PARENTS:
        base = getattr(child, f"{parent}_base_obligation")
        excess = getattr(child, f"{parent}_excess_overnights")

        fields[f"{prefix}_L1_{parent}"] = _dollars(base)
        fields[f"{prefix}_L2_{parent}"] = str(getattr(child, f"{parent}_overnights"))

        if child.credit_applies:
            fields[f"{prefix}_L4_{parent}"] = str(SHARED_PARENTING_THRESHOLD)
            fields[f"{prefix}_L5_{parent}"] = str(excess)
            fields[f"{prefix}_L6_{parent}"] = str(CREDIT_FACTOR)
            fields[f"{prefix}_L7_{parent}"] = str(CREDIT_FACTOR * excess)
        else:
            for line in ("L4", "L5", "L6", "L7"):
                fields[f"{prefix}_{line}_{parent}"] = ""

        fields[f"{prefix}_L8_{parent}"] = _dollars(getattr(child, f"{parent}_credited_amount"))
        fields[f"{prefix}_L9_{parent}"] = _dollars(getattr(child, f"{parent}_adjusted_obligation"))
        fields[f"{prefix}_L12_{parent}"] = _dollars(getattr(child, f"{parent}_annual"))
        fields[f"{prefix}_L13_{parent}"] = _dollars(getattr(child, f"{parent}_monthly"))

    return fields


def build_worksheet_b_fields(result: FinalResult) -> dict[str, str]:
    """Build Worksheet B field values for every child.

    Credit lines 4-9 are blank for a child when the shared parenting
    credit does not apply.
    """
    fields: dict[str, str] = {}
    for child in result.children:
        fields.update(_child_fields(child))
    return fields
