"""Utility functions for the budget calculator.

This module provides the money helpers shared by the engine and the input
layers: normalizing untrusted amounts into ``Decimal`` values, rounding to
cents and parsing user-typed amounts such as ``"32k"`` or ``"1,200"``.
"""

from __future__ import annotations

from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
ZERO_CENTS = Decimal("0.00")

# Wide enough to quantize any finite float (up to ~1.8e308) to cents.
_MONEY_CONTEXT = Context(prec=400)


def to_money(value: Any) -> Decimal:
    """Convert an untrusted amount into a finite ``Decimal``.

    Missing, non-numeric (including booleans and strings) and non-finite
    values become ``0``. Floats are converted through their shortest repr so
    ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
    """
    if isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    else:
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def non_negative(value: Any) -> Decimal:
    """Normalize ``value`` with :func:`to_money` and floor it at zero."""
    amount = to_money(value)
    return amount if amount > ZERO else ZERO


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return min(high, max(low, value))


def round2(value: Decimal) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)
    # Avoid "-0.00" in output.
    return rounded if rounded != ZERO else ZERO_CENTS


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and whitespace. It raises ``ValueError``
    if conversion fails or the number is not finite.
    """
    try:
        amount = Decimal(value.replace(",", "").strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return amount


def parse_amount(value: str) -> float:
    """Parse a monetary amount typed by a user.

    Accepts plain numbers (``"32000"``), thousands separators (``"32,000"``)
    and shorthand with ``k``/``m`` suffixes (``"32k"`` meaning 32 000).
    An empty string is ``0``. Raises ``ValueError`` on anything else.
    """
    cleaned = value.strip().lower()
    if not cleaned:
        return 0.0
    factor = 1
    if cleaned.endswith("k"):
        factor = 1_000
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000
        cleaned = cleaned[:-1]
    amount = decimal_from_str(cleaned) * factor
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
