"""Data models for Montana CSSD child support guideline calculations.

This module implements the request and result structures for the CSSD
Worksheet A (guideline obligation), Worksheet B (parenting time
adjustment) and Worksheet C (minimum support).

Every model is frozen. Each pipeline stage produces a new model that the
next stage consumes; nothing is mutated after creation.
"""

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import NegativeInputPolicy
from .exceptions import ValidationError
from .guideline_tables import MAX_OVERNIGHTS, child_count_out_of_range, clamp_child_count
from .rounding import ZERO, to_decimal


def _money(value: Any) -> Decimal:
    """Coerce to a non-negative Decimal."""
    return max(ZERO, to_decimal(value))


def _overnights(value: Any) -> int:
    """Coerce to a whole number of overnights in 0-366."""
    return int(min(max(to_decimal(value), 0), MAX_OVERNIGHTS))


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Payer(str, Enum):
    """Parent who makes the final monthly transfer."""
    MOTHER = "mother"
    FATHER = "father"
    NONE = "none"


class ScheduleSource(str, Enum):
    """Where a child's overnight counts came from."""
    SUPPLIED = "supplied"
    FIRST_CHILD = "first_child"  # reused the first child's schedule
    DEFAULT = "default"  # no schedule at all, configured fallback


# =============================================================================
# INPUT MODELS
# =============================================================================

class SupplementalExpenses(BaseModel):
    """Worksheet A line 12 supplements (annual)."""
    model_config = ConfigDict(frozen=True)

    childcare: Decimal = ZERO  # 12a
    health: Decimal = ZERO  # 12b, health insurance
    uninsured_medical: Decimal = ZERO  # 12c
    other: Decimal = ZERO  # 12d

    @field_validator("childcare", "health", "uninsured_medical", "other", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return _money(v)

    @property
    def total(self) -> Decimal:
        """Line 12e."""
        return self.childcare + self.health + self.uninsured_medical + self.other


class ChildSchedule(BaseModel):
    """Overnights per year with each parent for one child."""
    model_config = ConfigDict(frozen=True)

    mother_overnights: int = 0
    father_overnights: int = 0

    @field_validator("mother_overnights", "father_overnights", mode="before")
    @classmethod
    def coerce_overnights(cls, v: Any) -> int:
        return _overnights(v)


class ItemizedIncome(BaseModel):
    """Worksheet A line 1 income sources for one parent (annual)."""
    model_config = ConfigDict(frozen=True)

    wages: Decimal = ZERO  # 1a
    self_employment: Decimal = ZERO  # 1b
    other_taxable: Decimal = ZERO  # 1c
    other_nontaxable: Decimal = ZERO  # 1d
    imputed: Decimal = ZERO  # 1e

    @field_validator(
        "wages", "self_employment", "other_taxable", "other_nontaxable", "imputed",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return _money(v)

    @property
    def total(self) -> Decimal:
        """Line 1i."""
        return (
            self.wages + self.self_employment + self.other_taxable +
            self.other_nontaxable + self.imputed
        )


class ItemizedDeductions(BaseModel):
    """Worksheet A line 2 allowable deductions for one parent (annual)."""
    model_config = ConfigDict(frozen=True)

    federal_tax: Decimal = ZERO  # 2a
    state_tax: Decimal = ZERO  # 2b
    social_security: Decimal = ZERO  # 2c
    medicare: Decimal = ZERO  # 2d
    retirement: Decimal = ZERO  # 2e, mandatory contributions
    union_dues: Decimal = ZERO  # 2f
    other_child_support: Decimal = ZERO  # 2g, paid for other children
    alimony: Decimal = ZERO  # 2h, paid

    @field_validator(
        "federal_tax", "state_tax", "social_security", "medicare",
        "retirement", "union_dues", "other_child_support", "alimony",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return _money(v)

    @property
    def total(self) -> Decimal:
        """Line 2l."""
        return (
            self.federal_tax + self.state_tax + self.social_security +
            self.medicare + self.retirement + self.union_dues +
            self.other_child_support + self.alimony
        )


# Accepted spellings for raw form keys, canonical name first
_FORM_KEYS = {
    "mother_gross_annual": ("mother_gross_annual", "motherGrossAnnual", "mIncome"),
    "mother_deductions_annual": ("mother_deductions_annual", "motherDeductionsAnnual", "mDed"),
    "father_gross_annual": ("father_gross_annual", "fatherGrossAnnual", "fIncome"),
    "father_deductions_annual": ("father_deductions_annual", "fatherDeductionsAnnual", "fDed"),
    "number_of_children": ("number_of_children", "numberOfChildren", "numChildren"),
    "supplemental_expenses": ("supplemental_expenses", "supplementalExpenses", "supplements"),
    "parenting_schedule": ("parenting_schedule", "parentingSchedule", "parenting"),
}

_SUPPLEMENT_KEYS = {
    "childcare": ("childcare",),
    "health": ("health",),
    "uninsured_medical": ("uninsured_medical", "uninsuredMedical", "med"),
    "other": ("other",),
}

_SCHEDULE_KEYS = {
    "mother_overnights": ("mother_overnights", "motherOvernights", "daysA"),
    "father_overnights": ("father_overnights", "fatherOvernights", "daysB"),
}


def _pick(data: Mapping[str, Any], keys: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    picked = {}
    for name, aliases in keys.items():
        for alias in aliases:
            if alias in data:
                picked[name] = data[alias]
                break
    return picked


def _reject_negative(field: str, value: Any) -> None:
    if to_decimal(value) < 0:
        raise ValidationError(
            f"{field} cannot be negative",
            field=field,
            value=value,
            constraint=">= 0",
        )


def _schedule_entry(entry: Any) -> ChildSchedule:
    if isinstance(entry, ChildSchedule):
        return entry
    if isinstance(entry, Mapping):
        return ChildSchedule(**_pick(entry, _SCHEDULE_KEYS))
    return ChildSchedule()


class GuidelineInput(BaseModel):
    """A single guideline calculation request.

    Amounts are annual. Missing, malformed, or non-finite values become 0,
    negative values are clamped to 0, and the child count is clamped to
    1-8 (``children_clamped`` records that it was). Use ``from_form`` to
    reject negatives instead.
    """
    model_config = ConfigDict(frozen=True)

    mother_gross_annual: Decimal = ZERO
    mother_deductions_annual: Decimal = ZERO
    father_gross_annual: Decimal = ZERO
    father_deductions_annual: Decimal = ZERO
    number_of_children: int = 1
    supplemental_expenses: SupplementalExpenses = Field(default_factory=SupplementalExpenses)
    parenting_schedule: tuple[ChildSchedule, ...] = ()
    children_clamped: bool = False  # requested count was outside 1-8

    @model_validator(mode="before")
    @classmethod
    def flag_clamped_children(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "number_of_children" in data:
            if child_count_out_of_range(data["number_of_children"]):
                data = {**data, "children_clamped": True}
        return data

    @field_validator(
        "mother_gross_annual", "mother_deductions_annual",
        "father_gross_annual", "father_deductions_annual",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return _money(v)

    @field_validator("number_of_children", mode="before")
    @classmethod
    def clamp_children(cls, v: Any) -> int:
        return clamp_child_count(v)

    @field_validator("supplemental_expenses", mode="before")
    @classmethod
    def default_supplements(cls, v: Any) -> Any:
        if isinstance(v, SupplementalExpenses):
            return v
        if isinstance(v, Mapping):
            return SupplementalExpenses(**_pick(v, _SUPPLEMENT_KEYS))
        return SupplementalExpenses()

    @field_validator("parenting_schedule", mode="before")
    @classmethod
    def default_schedule(cls, v: Any) -> tuple[ChildSchedule, ...]:
        if not isinstance(v, (list, tuple)):
            return ()
        return tuple(_schedule_entry(entry) for entry in v)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        negative_policy: NegativeInputPolicy = NegativeInputPolicy.CLAMP,
    ) -> "GuidelineInput":
        """Build an input from a raw form mapping.

        Keys may be snake_case, camelCase, or the short form names
        (``mIncome``, ``fDed``, ``numChildren``, ``parenting`` with
        ``daysA``/``daysB``).

        Raises:
            ValidationError: A value is negative and the policy is REJECT.
        """
        values = _pick(form, _FORM_KEYS)

        if negative_policy == NegativeInputPolicy.REJECT:
            for name in (
                "mother_gross_annual", "mother_deductions_annual",
                "father_gross_annual", "father_deductions_annual",
            ):
                if name in values:
                    _reject_negative(name, values[name])

            supplements = values.get("supplemental_expenses")
            if isinstance(supplements, Mapping):
                for name, value in _pick(supplements, _SUPPLEMENT_KEYS).items():
                    _reject_negative(f"supplemental_expenses.{name}", value)

            schedule = values.get("parenting_schedule") or ()
            if isinstance(schedule, (list, tuple)):
                for index, entry in enumerate(schedule):
                    if not isinstance(entry, Mapping):
                        continue
                    for name, value in _pick(entry, _SCHEDULE_KEYS).items():
                        _reject_negative(f"parenting_schedule[{index}].{name}", value)

        return cls(**values)

    @classmethod
    def from_itemized(
        cls,
        mother_income: ItemizedIncome,
        mother_deductions: ItemizedDeductions,
        father_income: ItemizedIncome,
        father_deductions: ItemizedDeductions,
        **kwargs: Any,
    ) -> "GuidelineInput":
        """Build an input from line 1 and line 2 detail for each parent."""
        return cls(
            mother_gross_annual=mother_income.total,
            mother_deductions_annual=mother_deductions.total,
            father_gross_annual=father_income.total,
            father_deductions_annual=father_deductions.total,
            **kwargs,
        )


# =============================================================================
# WORKSHEET RESULT MODELS
# =============================================================================

class AuditEntry(BaseModel):
    """Audit log entry for calculation transparency."""
    model_config = ConfigDict(frozen=True)

    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None
    line_number: Optional[str] = None  # CSSD worksheet line reference


class WorksheetCResult(BaseModel):
    """Worksheet C minimum support for one parent."""
    model_config = ConfigDict(frozen=True)

    income_after_deductions: Decimal
    personal_allowance: Decimal
    ratio: Decimal
    multiplier: Decimal
    minimum_support: Decimal


class ParentWorksheetA(BaseModel):
    """Worksheet A lines 1-7 for one parent."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal  # 1i
    total_deductions: Decimal  # 2l
    income_after_deductions: Decimal  # 3, may be negative
    personal_allowance: Decimal  # 4
    income_available: Decimal  # 5
    minimum_floor: Decimal  # 6
    line_seven: Decimal  # 7
    worksheet_c: Optional[WorksheetCResult] = None

    @property
    def sola_skipped(self) -> bool:
        """SOLA lines are left blank when the minimum floor governs."""
        return self.minimum_floor > self.income_available


class ParentCombinedLines(BaseModel):
    """One parent's allocation of the combined support need."""
    model_config = ConfigDict(frozen=True)

    share: Decimal  # line 9
    primary_share: Decimal
    supplement_share: Decimal
    income_for_sola: Optional[Decimal] = None  # None when SOLA is skipped
    sola: Optional[Decimal] = None
    gross_obligation: Decimal
    credit: Decimal
    net_obligation: Decimal

    @property
    def sola_amount(self) -> Decimal:
        """SOLA contribution to the support need (0 when skipped)."""
        return self.sola if self.sola is not None else ZERO


class CombinedResult(BaseModel):
    """Worksheet A lines 8 onward for both parents."""
    model_config = ConfigDict(frozen=True)

    number_of_children: int
    combined_line_seven: Decimal
    used_default_shares: bool
    primary_allowance: Decimal
    sola_factor: Decimal
    total_supplements: Decimal
    total_support_need: Decimal
    mother: ParentCombinedLines
    father: ParentCombinedLines


class PerChildResult(BaseModel):
    """Worksheet B parenting time adjustment for one child.

    Credit lines are None when the shared parenting credit does not apply,
    so renderers leave them blank rather than printing zero.
    """
    model_config = ConfigDict(frozen=True)

    child_index: int
    mother_overnights: int
    father_overnights: int
    schedule_source: ScheduleSource = ScheduleSource.SUPPLIED
    mother_base_obligation: Decimal
    father_base_obligation: Decimal
    credit_applies: bool
    mother_excess_overnights: Optional[int] = None
    father_excess_overnights: Optional[int] = None
    mother_credited_amount: Optional[Decimal] = None
    father_credited_amount: Optional[Decimal] = None
    mother_adjusted_obligation: Optional[Decimal] = None
    father_adjusted_obligation: Optional[Decimal] = None
    mother_annual: Decimal
    father_annual: Decimal
    mother_monthly: Decimal
    father_monthly: Decimal


class TransferSummary(BaseModel):
    """Aggregated per-parent totals and the final transfer."""
    model_config = ConfigDict(frozen=True)

    payer: Payer
    total_annual_transfer: Decimal
    total_monthly_transfer: Decimal
    mother_total_annual: Decimal
    father_total_annual: Decimal
    mother_total_monthly: Decimal
    father_total_monthly: Decimal


class FinalResult(BaseModel):
    """Complete guideline calculation with the full worksheet trail."""
    model_config = ConfigDict(frozen=True)

    # Final transfer
    payer: Payer
    total_annual_transfer: Decimal
    total_monthly_transfer: Decimal

    # Per parent totals (sum of per child amounts)
    mother_total_annual: Decimal
    father_total_annual: Decimal
    mother_total_monthly: Decimal
    father_total_monthly: Decimal

    children: tuple[PerChildResult, ...]

    # Worksheet trail
    request: GuidelineInput
    mother_worksheet: ParentWorksheetA
    father_worksheet: ParentWorksheetA
    combined: CombinedResult

    audit_log: tuple[AuditEntry, ...] = ()
    methodology_version: str
    guideline_version: str
    warnings: tuple[str, ...] = ()
