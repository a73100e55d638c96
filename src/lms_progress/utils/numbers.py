from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def percentage_of(part: int, whole: int) -> int:
    """Return ``part / whole * 100`` rounded to the nearest integer, halves rounding up.

    Integer arithmetic keeps the rounding exact (13 of 15 is 87, 1 of 8 is 13).
    An empty population reports 0.
    """
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def round_half_up(value: float) -> int:
    """Round a non-integral value to the nearest integer, halves rounding up."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
