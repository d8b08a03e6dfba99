"""CSSD Core - Montana child support guideline calculations."""

__version__ = "0.1.0"

from .calculator import GuidelineCalculator
from .config import (
    BandOverflowPolicy,
    CssdConfig,
    NegativeInputPolicy,
    ScheduleDefaults,
    configure_logging,
)
from .exceptions import ConfigurationError, CssdError, TemplateError, ValidationError
from .guideline_tables import (
    CREDIT_FACTOR,
    GUIDELINE_TABLES_VERSION,
    MINIMUM_SUPPORT_BANDS,
    PERSONAL_ALLOWANCE,
    PRIMARY_ALLOWANCE_BY_CHILDREN,
    SHARED_PARENTING_THRESHOLD,
    SOLA_FACTOR_BY_CHILDREN,
    get_primary_allowance,
    get_sola_factor,
)
from .models import (
    AuditEntry,
    ChildSchedule,
    CombinedResult,
    FinalResult,
    GuidelineInput,
    ItemizedDeductions,
    ItemizedIncome,
    ParentCombinedLines,
    ParentWorksheetA,
    Payer,
    PerChildResult,
    ScheduleSource,
    SupplementalExpenses,
    TransferSummary,
    WorksheetCResult,
)
from .pdf_filler import WorksheetPdfFiller
from .rounding import format_dollars, round_to_cents, round_to_unit, to_decimal
from .worksheet_fields import build_worksheet_a_fields, build_worksheet_b_fields
from .worksheets import (
    aggregate_transfer,
    compute_worksheet_a,
    compute_worksheet_b,
    compute_worksheet_c,
    resolve_combined,
)

__all__ = [
    # Calculator
    "GuidelineCalculator",
    # Configuration
    "CssdConfig",
    "ScheduleDefaults",
    "NegativeInputPolicy",
    "BandOverflowPolicy",
    "configure_logging",
    # Exceptions
    "CssdError",
    "ValidationError",
    "ConfigurationError",
    "TemplateError",
    # Tables
    "PERSONAL_ALLOWANCE",
    "PRIMARY_ALLOWANCE_BY_CHILDREN",
    "SOLA_FACTOR_BY_CHILDREN",
    "MINIMUM_SUPPORT_BANDS",
    "CREDIT_FACTOR",
    "SHARED_PARENTING_THRESHOLD",
    "GUIDELINE_TABLES_VERSION",
    "get_primary_allowance",
    "get_sola_factor",
    # Input models
    "GuidelineInput",
    "SupplementalExpenses",
    "ChildSchedule",
    "ItemizedIncome",
    "ItemizedDeductions",
    # Result models
    "Payer",
    "ScheduleSource",
    "AuditEntry",
    "WorksheetCResult",
    "ParentWorksheetA",
    "ParentCombinedLines",
    "CombinedResult",
    "PerChildResult",
    "TransferSummary",
    "FinalResult",
    # Worksheet stages
    "compute_worksheet_a",
    "compute_worksheet_b",
    "compute_worksheet_c",
    "resolve_combined",
    "aggregate_transfer",
    # Rounding
    "round_to_unit",
    "round_to_cents",
    "to_decimal",
    "format_dollars",
    # Rendering
    "build_worksheet_a_fields",
    "build_worksheet_b_fields",
    "WorksheetPdfFiller",
]
