"""
Money helpers.

Amounts are carried as Decimal once they leave the odds math. Rounding to
cents happens only at the boundaries: the final payout of a placed bet, the
wager itself, and the maximum wager offered to a bettor.
"""
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def as_decimal(value: Number) -> Decimal:
    """Coerce to Decimal without inheriting binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_money(value: Number) -> Decimal:
    """Round half-up to whole cents."""
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Number) -> Decimal:
    """Round down to whole cents."""
    return as_decimal(value).quantize(CENT, rounding=ROUND_FLOOR)


def money_sum(values) -> Decimal:
    total = ZERO
    for value in values:
        total += as_decimal(value)
    return total
