"""Rounding helpers for recipe weights and money.

Both round half away from zero on the decimal form of the value, so 12.25 g
becomes 12.3 g and -12.25 becomes -12.3, regardless of binary float noise.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .constants import CURRENCY_DECIMAL_PLACES, OXIDANT_DECIMAL_PLACES

Number = Union[int, float, Decimal, str]


def round_half_up(value: Number, places: int) -> Decimal:
    """
    Round to ``places`` decimals, half away from zero.

    Floats go through ``repr`` (``str``) so 0.15 rounds to 0.2 rather than
    0.1 as its binary value would suggest.

    Examples:
        >>> round_half_up(0.15, 1)
        Decimal('0.2')
        >>> round_half_up(-2.5, 0)
        Decimal('-3')
    """
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def round_grams(value: Number) -> float:
    """Round a weight to the oxidant precision (one decimal) and return a float."""
    return float(round_half_up(value, OXIDANT_DECIMAL_PLACES))


def round_money(value: Number) -> Decimal:
    """Round an amount to whole cents."""
    return round_half_up(value, CURRENCY_DECIMAL_PLACES)
