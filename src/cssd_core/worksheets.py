"""Pure worksheet stages of the CSSD guideline calculation.

Each function takes the previous stage's result and returns a new frozen
model:

    compute_worksheet_a (per parent, uses compute_worksheet_c)
        -> resolve_combined
        -> compute_worksheet_b (per child)
        -> aggregate_transfer

No stage logs or keeps state; GuidelineCalculator wires them together and
records the audit trail.
"""

from decimal import Decimal
from typing import Any, Optional, Sequence

from .config import BandOverflowPolicy, ScheduleDefaults
from .guideline_tables import (
    CREDIT_FACTOR,
    DEFAULT_PARENT_SHARE,
    MINIMUM_FLOOR_RATE,
    MONTHS_PER_YEAR,
    PERSONAL_ALLOWANCE,
    SHARED_PARENTING_THRESHOLD,
    ZERO_ALLOWANCE_RATIO,
    clamp_child_count,
    get_minimum_support_band,
    get_primary_allowance,
    get_sola_factor,
)
from .models import (
    ChildSchedule,
    CombinedResult,
    ParentCombinedLines,
    ParentWorksheetA,
    Payer,
    PerChildResult,
    ScheduleSource,
    TransferSummary,
    WorksheetCResult,
)
from .rounding import ZERO, round_to_cents, round_to_unit, to_decimal


# =============================================================================
# WORKSHEET C
# =============================================================================

def compute_worksheet_c(
    income_after_deductions: Any,
    personal_allowance: Any = PERSONAL_ALLOWANCE,
    overflow: BandOverflowPolicy = BandOverflowPolicy.CLAMP,
) -> WorksheetCResult:
    """Compute the Worksheet C minimum support amount for one parent.

    Args:
        income_after_deductions: Worksheet A line 3
        personal_allowance: Worksheet A line 4
        overflow: Band used when the ratio exceeds 1.00

    Returns:
        WorksheetCResult with the ratio, band multiplier and minimum support
    """
    line_3 = round_to_unit(income_after_deductions)
    line_4 = round_to_unit(personal_allowance)

    if line_4 == 0:
        ratio = ZERO_ALLOWANCE_RATIO
    else:
        ratio = line_3 / line_4

    band = get_minimum_support_band(ratio, overflow)

    return WorksheetCResult(
        income_after_deductions=line_3,
        personal_allowance=line_4,
        ratio=ratio,
        multiplier=band.multiplier,
        minimum_support=round_to_unit(line_3 * band.multiplier),
    )


# =============================================================================
# WORKSHEET A
# =============================================================================

def compute_worksheet_a(
    gross_annual_income: Any,
    deductions_annual: Any,
    overflow: BandOverflowPolicy = BandOverflowPolicy.CLAMP,
) -> ParentWorksheetA:
    """Compute Worksheet A lines 1-7 for one parent.

    Every line is rounded to whole dollars as it is computed. Line 6 comes
    from Worksheet C when line 5 is zero, otherwise it is 12% of line 3.
    """
    line_1i = round_to_unit(gross_annual_income)
    line_2l = round_to_unit(deductions_annual)
    line_3 = round_to_unit(line_1i - line_2l)
    line_4 = PERSONAL_ALLOWANCE
    line_5 = round_to_unit(max(ZERO, line_3 - line_4))

    worksheet_c = None
    if line_5 <= 0:
        worksheet_c = compute_worksheet_c(line_3, line_4, overflow)
        line_6 = worksheet_c.minimum_support
    else:
        line_6 = round_to_unit(MINIMUM_FLOOR_RATE * line_3)

    line_7 = round_to_unit(max(line_5, line_6))

    return ParentWorksheetA(
        total_income=line_1i,
        total_deductions=line_2l,
        income_after_deductions=line_3,
        personal_allowance=line_4,
        income_available=line_5,
        minimum_floor=line_6,
        line_seven=line_7,
        worksheet_c=worksheet_c,
    )


# =============================================================================
# COMBINED PARENTS AND SOLA
# =============================================================================

def _allocate(
    worksheet: ParentWorksheetA,
    share: Decimal,
    primary_allowance: Decimal,
    total_supplements: Decimal,
    sola_factor: Decimal,
) -> tuple[Decimal, Decimal, Optional[Decimal], Optional[Decimal]]:
    primary_share = round_to_unit(share * primary_allowance)
    supplement_share = round_to_unit(share * total_supplements)

    if worksheet.sola_skipped:
        return primary_share, supplement_share, None, None

    income_for_sola = round_to_unit(
        max(ZERO, worksheet.income_available - primary_share - supplement_share)
    )
    sola = round_to_unit(income_for_sola * sola_factor)
    return primary_share, supplement_share, income_for_sola, sola


def _obligation(
    share: Decimal,
    total_support_need: Decimal,
    primary_share: Decimal,
    supplement_share: Decimal,
    income_for_sola: Optional[Decimal],
    sola: Optional[Decimal],
) -> ParentCombinedLines:
    gross_obligation = round_to_unit(share * total_support_need)
    # Credited for the supplements the parent pays directly
    credit = supplement_share
    net_obligation = round_to_unit(max(ZERO, gross_obligation - credit))

    return ParentCombinedLines(
        share=share,
        primary_share=primary_share,
        supplement_share=supplement_share,
        income_for_sola=income_for_sola,
        sola=sola,
        gross_obligation=gross_obligation,
        credit=credit,
        net_obligation=net_obligation,
    )


def resolve_combined(
    mother: ParentWorksheetA,
    father: ParentWorksheetA,
    number_of_children: Any,
    total_supplements: Any,
) -> CombinedResult:
    """Merge both parents' Worksheet A results into annual obligations.

    Shares are each parent's line 7 over the combined line 7, or 50/50 when
    the combined amount is zero. SOLA is computed on income left after the
    parent's share of the primary allowance and supplements, and is skipped
    for a parent whose minimum floor exceeds available income.
    """
    children = clamp_child_count(number_of_children)
    supplements = max(ZERO, to_decimal(total_supplements))

    combined_line_seven = round_to_unit(mother.line_seven + father.line_seven)
    used_default_shares = combined_line_seven <= 0
    if used_default_shares:
        mother_share = DEFAULT_PARENT_SHARE
        father_share = DEFAULT_PARENT_SHARE
    else:
        mother_share = mother.line_seven / combined_line_seven
        father_share = father.line_seven / combined_line_seven

    primary_allowance = get_primary_allowance(children)
    sola_factor = get_sola_factor(children)

    m_primary, m_supp, m_income_for_sola, m_sola = _allocate(
        mother, mother_share, primary_allowance, supplements, sola_factor
    )
    f_primary, f_supp, f_income_for_sola, f_sola = _allocate(
        father, father_share, primary_allowance, supplements, sola_factor
    )

    total_support_need = round_to_unit(
        primary_allowance + supplements + (m_sola or ZERO) + (f_sola or ZERO)
    )

    return CombinedResult(
        number_of_children=children,
        combined_line_seven=combined_line_seven,
        used_default_shares=used_default_shares,
        primary_allowance=primary_allowance,
        sola_factor=sola_factor,
        total_supplements=supplements,
        total_support_need=total_support_need,
        mother=_obligation(
            mother_share, total_support_need, m_primary, m_supp, m_income_for_sola, m_sola
        ),
        father=_obligation(
            father_share, total_support_need, f_primary, f_supp, f_income_for_sola, f_sola
        ),
    )


# =============================================================================
# WORKSHEET B - PARENTING TIME
# =============================================================================

def resolve_schedule(
    schedule: Sequence[ChildSchedule],
    child_position: int,
    defaults: ScheduleDefaults,
) -> tuple[ChildSchedule, ScheduleSource]:
    """Pick the overnights for a child (0-based position).

    A child without an entry reuses the first child's schedule. With no
    schedule at all the configured default split is used.
    """
    if child_position < len(schedule):
        return schedule[child_position], ScheduleSource.SUPPLIED
    if schedule:
        return schedule[0], ScheduleSource.FIRST_CHILD
    fallback = ChildSchedule(
        mother_overnights=defaults.mother_overnights,
        father_overnights=defaults.father_overnights,
    )
    return fallback, ScheduleSource.DEFAULT


def _simple_rule(
    mother_base: Decimal,
    father_base: Decimal,
    mother_overnights: int,
    father_overnights: int,
) -> tuple[Decimal, Decimal]:
    """Parent with less time pays their full base obligation."""
    if mother_overnights > father_overnights:
        return ZERO, father_base
    if father_overnights > mother_overnights:
        return mother_base, ZERO

    # Equal time, larger obligation pays the difference
    if mother_base > father_base:
        return mother_base - father_base, ZERO
    if father_base > mother_base:
        return ZERO, father_base - mother_base
    return ZERO, ZERO


def compute_worksheet_b(
    child_index: int,
    mother_base: Decimal,
    father_base: Decimal,
    mother_overnights: int,
    father_overnights: int,
    schedule_source: ScheduleSource = ScheduleSource.SUPPLIED,
) -> PerChildResult:
    """Compute the Worksheet B parenting time adjustment for one child.

    The shared parenting credit applies only when both parents have more
    than 110 overnights. Each parent's base obligation is credited 0.69%
    per overnight above 110; the parent with the larger adjusted
    obligation pays the difference, never more than their own base.

    Args:
        child_index: 1-based child number
        mother_base: Mother's annual obligation for this child (unrounded)
        father_base: Father's annual obligation for this child (unrounded)
        mother_overnights: Overnights per year with the mother
        father_overnights: Overnights per year with the father
        schedule_source: Where the overnights came from

    Returns:
        PerChildResult with annual and monthly amounts owed by each parent
    """
    credit_applies = (
        mother_overnights > SHARED_PARENTING_THRESHOLD
        and father_overnights > SHARED_PARENTING_THRESHOLD
    )

    credit_lines: dict[str, Any] = {}
    if not credit_applies:
        mother_owed, father_owed = _simple_rule(
            mother_base, father_base, mother_overnights, father_overnights
        )
    else:
        mother_excess = mother_overnights - SHARED_PARENTING_THRESHOLD
        father_excess = father_overnights - SHARED_PARENTING_THRESHOLD
        mother_credited = round_to_unit(CREDIT_FACTOR * mother_excess * mother_base)
        father_credited = round_to_unit(CREDIT_FACTOR * father_excess * father_base)
        mother_adjusted = round_to_unit(mother_base - mother_credited)
        father_adjusted = round_to_unit(father_base - father_credited)

        difference = abs(mother_adjusted - father_adjusted)
        mother_owed = min(difference, mother_base) if mother_adjusted > father_adjusted else ZERO
        father_owed = min(difference, father_base) if father_adjusted > mother_adjusted else ZERO

        credit_lines = {
            "mother_excess_overnights": mother_excess,
            "father_excess_overnights": father_excess,
            "mother_credited_amount": mother_credited,
            "father_credited_amount": father_credited,
            "mother_adjusted_obligation": mother_adjusted,
            "father_adjusted_obligation": father_adjusted,
        }

    mother_annual = round_to_unit(mother_owed)
    father_annual = round_to_unit(father_owed)

    return PerChildResult(
        child_index=child_index,
        mother_overnights=mother_overnights,
        father_overnights=father_overnights,
        schedule_source=schedule_source,
        mother_base_obligation=mother_base,
        father_base_obligation=father_base,
        credit_applies=credit_applies,
        mother_annual=mother_annual,
        father_annual=father_annual,
        mother_monthly=round_to_cents(mother_annual / MONTHS_PER_YEAR),
        father_monthly=round_to_cents(father_annual / MONTHS_PER_YEAR),
        **credit_lines,
    )


# =============================================================================
# AGGREGATION
# =============================================================================

def aggregate_transfer(children: Sequence[PerChildResult]) -> TransferSummary:
    """Sum per-child amounts and determine the final payer and transfer.

    The parent with the strictly larger monthly total pays the difference.
    Equal totals mean no transfer.
    """
    mother_total_annual = round_to_unit(sum((c.mother_annual for c in children), ZERO))
    father_total_annual = round_to_unit(sum((c.father_annual for c in children), ZERO))

    mother_total_monthly = round_to_cents(mother_total_annual / MONTHS_PER_YEAR)
    father_total_monthly = round_to_cents(father_total_annual / MONTHS_PER_YEAR)

    if mother_total_monthly > father_total_monthly:
        payer = Payer.MOTHER
        monthly_transfer = mother_total_monthly - father_total_monthly
    elif father_total_monthly > mother_total_monthly:
        payer = Payer.FATHER
        monthly_transfer = father_total_monthly - mother_total_monthly
    else:
        payer = Payer.NONE
        monthly_transfer = ZERO

    return TransferSummary(
        payer=payer,
        total_annual_transfer=round_to_unit(monthly_transfer * MONTHS_PER_YEAR),
        total_monthly_transfer=round_to_cents(monthly_transfer),
        mother_total_annual=mother_total_annual,
        father_total_annual=father_total_annual,
        mother_total_monthly=mother_total_monthly,
        father_total_monthly=father_total_monthly,
    )
