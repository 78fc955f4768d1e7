"""Decimal helpers for euro amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def to_money(value: Number) -> Decimal:
    """Quantize to whole cents, rounding half up."""
    if isinstance(value, Decimal):
        dec = value
    else:
        dec = Decimal(str(value))
    return dec.quantize(CENT, rounding=ROUND_HALF_UP)


def money_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(to_money(value))


def percentage(part: Number, whole: Number, *, places: int = 0) -> float:
    """part/whole as a percentage, 0 when whole is 0."""
    whole_dec = Decimal(str(whole))
    if whole_dec == 0:
        return 0.0
    raw = Decimal(str(part)) / whole_dec * 100
    quantum = Decimal(1).scaleb(-places)
    return float(raw.quantize(quantum, rounding=ROUND_HALF_UP))
