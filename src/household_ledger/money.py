"""Decimal money helpers shared by the balance engine."""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Any net or delta at or below this magnitude is treated as zero
EPSILON = Decimal("0.001")

# Balances that disagree by more than this are reported as inconsistent
DISCREPANCY_THRESHOLD = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a value to Decimal without binary float artifacts.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1").
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_effectively_zero(amount: Decimal, tolerance: Decimal = EPSILON) -> bool:
    """Return True if ``|amount| <= tolerance``."""
    return abs(amount) <= tolerance


def round_cents(amount: Decimal) -> Decimal:
    """Round to whole cents using ROUND_HALF_UP."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
