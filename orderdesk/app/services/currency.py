"""Money helpers. Amounts are integer cents everywhere except at display time."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal, str]

_ONE = Decimal("1")
_CENT = Decimal("0.01")


def _dec(value: Number) -> Decimal:
    # str() keeps floats like 0.13 exact instead of their binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_cents(value: Number) -> int:
    """Round to the nearest whole cent, halves away from zero."""
    return int(_dec(value).quantize(_ONE, rounding=ROUND_HALF_UP))


def calculate_percentage(amount_cents: int, rate: Number) -> int:
    return round_cents(_dec(amount_cents) * _dec(rate))


def cents_to_amount(cents: Number) -> Decimal:
    """8999 -> Decimal('89.99')"""
    return (Decimal(round_cents(cents)) / 100).quantize(_CENT)


def format_cents_with_separator(cents: Number) -> str:
    """123456 -> '1,234.56'"""
    return f"{cents_to_amount(cents):,.2f}"


def format_rate(rate: Number) -> str:
    """Decimal('0.15') -> '15%'"""
    pct = _dec(rate) * 100
    return f"{pct.normalize():f}%"
