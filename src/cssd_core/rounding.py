"""Rounding and coercion helpers for guideline arithmetic.

CSSD worksheet instructions: annualize all entries and round all cents to
dollars as you go. $0.49 or less rounds down, $0.50 or more rounds up.
Monthly figures derived from an annual amount are kept to the cent.

Every helper here coerces missing, malformed, or non-finite input to zero
instead of raising, so partially filled forms still produce a result.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
_UNIT = Decimal("1")
_CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a form value to a finite Decimal (0 when that is impossible).

    Accepts Decimal, int, float and numeric strings. Strings may carry a
    leading ``$`` and thousands separators.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        try:
            # str() keeps the shortest repr so 0.1 stays 0.1
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if not cleaned:
            return ZERO
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not result.is_finite():
        return ZERO
    return result


def _quantize(value: Any, exponent: Decimal) -> Decimal:
    amount = to_decimal(value)
    try:
        rounded = amount.quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Exceeds context precision
        return ZERO
    # Normalizes -0 to 0
    return rounded + ZERO


def round_to_unit(value: Any) -> Decimal:
    """Round to whole dollars, half up (0.50 rounds up, never banker's)."""
    return _quantize(value, _UNIT)


def round_to_cents(value: Any) -> Decimal:
    """Round to two decimal places, half up. Used for monthly amounts."""
    return _quantize(value, _CENT)


def format_dollars(value: Any) -> str:
    """Format an amount for a worksheet field.

    Thousands separators and 0 to 2 fraction digits:
    ``1234`` -> ``1,234``, ``1234.5`` -> ``1,234.5``, ``0.256`` -> ``0.26``.
    """
    text = f"{round_to_cents(value):,.2f}"
    if text.endswith(".00"):
        return text[:-3]
    if text.endswith("0"):
        return text[:-1]
    return text
