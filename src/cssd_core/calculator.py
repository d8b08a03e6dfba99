"""Montana CSSD child support guideline calculator.

Runs the worksheet pipeline (A and C per parent, the combined resolver,
B per child, then aggregation) and records every step for the audit
trail. The worksheet stages themselves live in ``worksheets`` and are
pure; this class only sequences them and logs.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

import structlog

from .config import CssdConfig, configure_logging
from .guideline_tables import (
    CREDIT_FACTOR,
    GUIDELINE_TABLES_VERSION,
    MAX_CHILDREN,
    METHODOLOGY_VERSION,
    MIN_CHILDREN,
    SHARED_PARENTING_THRESHOLD,
)
from .models import (
    AuditEntry,
    CombinedResult,
    FinalResult,
    GuidelineInput,
    ParentWorksheetA,
    PerChildResult,
    ScheduleSource,
    TransferSummary,
)
from .worksheets import (
    aggregate_transfer,
    compute_worksheet_a,
    compute_worksheet_b,
    resolve_combined,
    resolve_schedule,
)

logger = structlog.get_logger()


class CalculationTrail:
    """Audit entries and warnings collected during one calculation."""

    def __init__(self) -> None:
        self.audit_log: list[AuditEntry] = []
        self.warnings: list[str] = []

    def log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None,
        line_number: Optional[str] = None,
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
            line_number=line_number,
        )
        self.audit_log.append(entry)
        logger.info(
            "calculation_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )


class GuidelineCalculator:
    """
    Calculate child support under the Montana CSSD guideline.

    Produces annual and monthly obligations for each parent, the final
    payer and transfer amount, and the complete Worksheet A, B and C
    trail needed to fill the statutory forms.

    All calculations are logged for audit trail and legal defensibility.
    """

    def __init__(self, config: Optional[CssdConfig] = None):
        """
        Initialize calculator.

        Args:
            config: Policy and fallback settings (default: loaded from environment)
        """
        self.config = config or CssdConfig()
        configure_logging(self.config)

    def _log_worksheet_a(
        self, trail: CalculationTrail, parent: str, ws: ParentWorksheetA
    ) -> None:
        trail.log_step(
            step=f"{parent}_income_after_deductions",
            input_value=f"total_income={ws.total_income}, deductions={ws.total_deductions}",
            output_value=str(ws.income_after_deductions),
            source="CSSD Worksheet A",
            line_number="Line 1i-3",
        )
        trail.log_step(
            step=f"{parent}_income_available",
            input_value=f"{ws.income_after_deductions} - personal_allowance={ws.personal_allowance}",
            output_value=str(ws.income_available),
            source="CSSD Worksheet A (personal allowance)",
            line_number="Line 4-5",
        )

        if ws.worksheet_c is not None:
            wsc = ws.worksheet_c
            trail.log_step(
                step=f"{parent}_worksheet_c",
                input_value=f"ratio={wsc.income_after_deductions}/{wsc.personal_allowance}={wsc.ratio:.4f}",
                output_value=f"multiplier={wsc.multiplier}, minimum_support={wsc.minimum_support}",
                source="CSSD Worksheet C",
                notes="Income available for support is zero",
            )
            trail.warnings.append(
                f"The {parent}'s income does not exceed the personal allowance; "
                "minimum support was taken from Worksheet C."
            )

        trail.log_step(
            step=f"{parent}_line_seven",
            input_value=f"line_5={ws.income_available}, line_6={ws.minimum_floor}",
            output_value=str(ws.line_seven),
            source="CSSD Worksheet A (greater of line 5 or 6)",
            line_number="Line 6-7",
        )

    def _log_combined(self, trail: CalculationTrail, combined: CombinedResult) -> None:
        trail.log_step(
            step="parent_shares",
            input_value=f"combined_line_7={combined.combined_line_seven}",
            output_value=f"mother={combined.mother.share:.4f}, father={combined.father.share:.4f}",
            source="CSSD Worksheet A",
            line_number="Line 8-9",
        )
        if combined.used_default_shares:
            trail.warnings.append(
                "Combined line 7 is zero; parent shares default to 50/50."
            )

        trail.log_step(
            step="primary_allowance_and_supplements",
            input_value=f"children={combined.number_of_children}",
            output_value=f"primary={combined.primary_allowance}, supplements={combined.total_supplements}",
            source="CSSD primary allowance table",
            line_number="Line 10-13",
        )

        for parent, lines in (("mother", combined.mother), ("father", combined.father)):
            if lines.sola is None:
                trail.log_step(
                    step=f"{parent}_sola",
                    input_value=f"primary_share={lines.primary_share}, supplement_share={lines.supplement_share}",
                    output_value="skipped",
                    source="CSSD Worksheet A (SOLA)",
                    notes="Minimum floor exceeds income available; SOLA lines left blank",
                    line_number="Line 15-20",
                )
            else:
                trail.log_step(
                    step=f"{parent}_sola",
                    input_value=f"income_for_sola={lines.income_for_sola} x {combined.sola_factor}",
                    output_value=str(lines.sola),
                    source="CSSD Worksheet A (SOLA)",
                    line_number="Line 15-20",
                )

        trail.log_step(
            step="total_support_need",
            input_value=(
                f"{combined.primary_allowance} + {combined.total_supplements} + "
                f"{combined.mother.sola_amount} + {combined.father.sola_amount}"
            ),
            output_value=str(combined.total_support_need),
            source="CSSD Worksheet A",
        )

        for parent, lines in (("mother", combined.mother), ("father", combined.father)):
            trail.log_step(
                step=f"{parent}_annual_obligation",
                input_value=f"gross={lines.gross_obligation}, credit={lines.credit}",
                output_value=str(lines.net_obligation),
                source="CSSD Worksheet A",
                line_number="Line 21-24",
            )

    def _log_child(self, trail: CalculationTrail, child: PerChildResult) -> None:
        if child.credit_applies:
            notes = (
                f"Both parents exceed {SHARED_PARENTING_THRESHOLD} overnights; "
                f"credit factor {CREDIT_FACTOR} per excess overnight"
            )
        else:
            notes = "Parent with fewer overnights pays base obligation"

        trail.log_step(
            step=f"child_{child.child_index}_parenting_adjustment",
            input_value=(
                f"overnights={child.mother_overnights}/{child.father_overnights}, "
                f"base={child.mother_base_obligation:.2f}/{child.father_base_obligation:.2f}"
            ),
            output_value=f"mother={child.mother_annual}, father={child.father_annual}",
            source="CSSD Worksheet B",
            notes=notes,
            line_number="Line 1-12",
        )

        if child.schedule_source == ScheduleSource.FIRST_CHILD:
            trail.warnings.append(
                f"No parenting schedule for child {child.child_index}; "
                "the first child's schedule was used."
            )
        elif child.schedule_source == ScheduleSource.DEFAULT:
            trail.warnings.append(
                f"No parenting schedule supplied; child {child.child_index} uses the default "
                f"{child.mother_overnights}/{child.father_overnights} split."
            )

    def _log_transfer(self, trail: CalculationTrail, summary: TransferSummary) -> None:
        trail.log_step(
            step="monthly_transfer",
            input_value=(
                f"mother={summary.mother_total_monthly}, "
                f"father={summary.father_total_monthly}"
            ),
            output_value=f"payer={summary.payer.value}, monthly={summary.total_monthly_transfer}",
            source="CSSD Worksheet A",
            line_number="Line 27",
        )

    def calculate(self, data: GuidelineInput) -> FinalResult:
        """
        Calculate the guideline child support obligation.

        Args:
            data: Incomes, deductions, children, supplements and schedule

        Returns:
            FinalResult with payer, transfer amounts and full worksheet trail
        """
        trail = CalculationTrail()
        overflow = self.config.worksheet_c_overflow

        if data.children_clamped:
            trail.warnings.append(
                f"Number of children is outside the {MIN_CHILDREN}-{MAX_CHILDREN} table range; "
                f"calculated for {data.number_of_children}."
            )

        # Step 1: Worksheet A (and C) for each parent
        mother_ws = compute_worksheet_a(
            data.mother_gross_annual, data.mother_deductions_annual, overflow
        )
        father_ws = compute_worksheet_a(
            data.father_gross_annual, data.father_deductions_annual, overflow
        )
        self._log_worksheet_a(trail, "mother", mother_ws)
        self._log_worksheet_a(trail, "father", father_ws)

        # Step 2: Combine, allocate, SOLA
        combined = resolve_combined(
            mother_ws,
            father_ws,
            data.number_of_children,
            data.supplemental_expenses.total,
        )
        self._log_combined(trail, combined)

        # Step 3: Worksheet B per child, equal share of each obligation
        children_count = combined.number_of_children
        mother_base = combined.mother.net_obligation / children_count
        father_base = combined.father.net_obligation / children_count

        children = []
        for position in range(children_count):
            schedule, source = resolve_schedule(
                data.parenting_schedule, position, self.config.schedule
            )
            child = compute_worksheet_b(
                child_index=position + 1,
                mother_base=mother_base,
                father_base=father_base,
                mother_overnights=schedule.mother_overnights,
                father_overnights=schedule.father_overnights,
                schedule_source=source,
            )
            self._log_child(trail, child)
            children.append(child)

        # Step 4: Aggregate
        summary = aggregate_transfer(children)
        self._log_transfer(trail, summary)

        logger.info(
            "guideline_calculation_complete",
            payer=summary.payer.value,
            monthly_transfer=str(summary.total_monthly_transfer),
            children=children_count,
            warnings=len(trail.warnings),
        )

        return FinalResult(
            payer=summary.payer,
            total_annual_transfer=summary.total_annual_transfer,
            total_monthly_transfer=summary.total_monthly_transfer,
            mother_total_annual=summary.mother_total_annual,
            father_total_annual=summary.father_total_annual,
            mother_total_monthly=summary.mother_total_monthly,
            father_total_monthly=summary.father_total_monthly,
            children=tuple(children),
            request=data,
            mother_worksheet=mother_ws,
            father_worksheet=father_ws,
            combined=combined,
            audit_log=tuple(trail.audit_log),
            methodology_version=METHODOLOGY_VERSION,
            guideline_version=GUIDELINE_TABLES_VERSION,
            warnings=tuple(trail.warnings),
        )

    def calculate_form(self, form: Mapping[str, Any]) -> FinalResult:
        """
        Calculate from a raw form mapping using the configured input policy.

        Raises:
            ValidationError: Negative input when the policy is REJECT
        """
        data = GuidelineInput.from_form(form, self.config.negative_input_policy)
        return self.calculate(data)

    def calculate_batch(self, inputs: Iterable[GuidelineInput]) -> list[FinalResult]:
        """Calculate several independent cases in order."""
        return [self.calculate(data) for data in inputs]
