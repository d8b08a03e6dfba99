"""Montana CSSD guideline tables for child support calculations.

This module contains the statutory constants used by Worksheets A, B and C:
the personal allowance, the primary child support allowance and SOLA
factor by number of children, the Worksheet C minimum-support bands, and
the Worksheet B parenting-time credit factor.

All amounts are annual. Tables are read-only module constants.
"""

from decimal import Decimal
from typing import Any, NamedTuple

from .config import BandOverflowPolicy
from .rounding import to_decimal


# =============================================================================
# VERSION TRACKING
# =============================================================================

GUIDELINE_TABLES_VERSION = "mt-cssd-v1"
METHODOLOGY_VERSION = "cssd-core-1.0"


def get_guideline_tables_version() -> str:
    """Return current guideline tables version."""
    return GUIDELINE_TABLES_VERSION


# =============================================================================
# WORKSHEET A - PERSONAL ALLOWANCE AND MINIMUM FLOOR
# =============================================================================

# Line 4, per parent (CSSD table 1)
PERSONAL_ALLOWANCE = Decimal("20345")

# Line 6 when line 5 is positive: 12% of income after deductions
MINIMUM_FLOOR_RATE = Decimal("0.12")


# =============================================================================
# PRIMARY ALLOWANCE AND SOLA
# =============================================================================

MIN_CHILDREN = 1
MAX_CHILDREN = 8

# Primary child support allowance for the whole case (CSSD table 2)
PRIMARY_ALLOWANCE_BY_CHILDREN = {
    1: Decimal("6104"),
    2: Decimal("10173"),
    3: Decimal("14242"),
    4: Decimal("16276"),
    5: Decimal("18311"),
    6: Decimal("20345"),
    7: Decimal("22380"),
    8: Decimal("24414"),
}

# Standard of Living Adjustment: share of remaining income
SOLA_FACTOR_BY_CHILDREN = {
    1: Decimal("0.14"),
    2: Decimal("0.21"),
    3: Decimal("0.27"),
    4: Decimal("0.31"),
    5: Decimal("0.35"),
    6: Decimal("0.39"),
    7: Decimal("0.43"),
    8: Decimal("0.47"),
}

# Line 9 split when combined line 7 is zero (no income basis for a ratio)
DEFAULT_PARENT_SHARE = Decimal("0.5")


def clamp_child_count(number_of_children: Any) -> int:
    """Clamp a child count to the 1-8 range covered by the tables."""
    # Bound before int() so huge exponents never expand
    count = min(max(to_decimal(number_of_children), MIN_CHILDREN), MAX_CHILDREN)
    return int(count)


def child_count_out_of_range(number_of_children: Any) -> bool:
    """True when a requested child count falls outside the tables."""
    count = to_decimal(number_of_children)
    return count < MIN_CHILDREN or count >= MAX_CHILDREN + 1


def get_primary_allowance(number_of_children: Any) -> Decimal:
    """Get the annual primary child support allowance.

    Args:
        number_of_children: Children in the case; clamped to 1-8

    Returns:
        Annual primary allowance for the whole case
    """
    return PRIMARY_ALLOWANCE_BY_CHILDREN[clamp_child_count(number_of_children)]


def get_sola_factor(number_of_children: Any) -> Decimal:
    """Get the SOLA factor for the number of children (clamped to 1-8)."""
    return SOLA_FACTOR_BY_CHILDREN[clamp_child_count(number_of_children)]


# =============================================================================
# WORKSHEET C - MINIMUM SUPPORT BANDS
# =============================================================================
# ratio = line 3 (income after deductions) / line 4 (personal allowance).
# Bands are contiguous: the first is [0, 0.25], each later band covers
# (previous upper, upper].

class MinimumSupportBand(NamedTuple):
    """One Worksheet C band."""
    lower: Decimal
    upper: Decimal
    multiplier: Decimal


def _build_bands(uppers: list[str]) -> tuple[MinimumSupportBand, ...]:
    bands = []
    lower = Decimal("0")
    for index, upper in enumerate(uppers):
        bands.append(MinimumSupportBand(
            lower=lower,
            upper=Decimal(upper),
            multiplier=Decimal(index) / Decimal("100"),
        ))
        lower = Decimal(upper)
    return tuple(bands)


MINIMUM_SUPPORT_BANDS = _build_bands([
    "0.25", "0.31", "0.38", "0.45", "0.52", "0.59",
    "0.66", "0.73", "0.80", "0.87", "0.94", "1.00",
])

# Ratio used when line 4 is zero (no allowance to divide by)
ZERO_ALLOWANCE_RATIO = Decimal("0")


def get_minimum_support_band(
    ratio: Decimal,
    overflow: BandOverflowPolicy = BandOverflowPolicy.CLAMP,
) -> MinimumSupportBand:
    """Select the Worksheet C band for an income ratio.

    Ratios below zero use the first band. Ratios above the top band follow
    the overflow policy: CLAMP returns the top band, ZERO returns a
    synthetic band with a 0% multiplier.
    """
    if ratio <= MINIMUM_SUPPORT_BANDS[0].upper:
        return MINIMUM_SUPPORT_BANDS[0]

    for band in MINIMUM_SUPPORT_BANDS[1:]:
        if band.lower < ratio <= band.upper:
            return band

    top = MINIMUM_SUPPORT_BANDS[-1]
    if overflow == BandOverflowPolicy.ZERO:
        return MinimumSupportBand(lower=top.upper, upper=ratio, multiplier=Decimal("0"))
    return top


# =============================================================================
# WORKSHEET B - PARENTING TIME CREDIT
# =============================================================================

# A parent must have strictly more than this many overnights
SHARED_PARENTING_THRESHOLD = 110

# Overnight counts are capped at one leap year
MAX_OVERNIGHTS = 366

# Line 6 credit factor, applied per overnight above the threshold
CREDIT_FACTOR = Decimal("0.0069")

MONTHS_PER_YEAR = 12
