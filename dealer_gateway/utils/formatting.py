"""Presentation helpers for money and interest rates"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float]

CENTS = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Convert ints, floats and Decimals to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(amount: Number) -> Decimal:
    """Round to the nearest whole currency unit (half up)"""
    return to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def round_cents(amount: Number) -> Decimal:
    """Round to two decimal places (half up)"""
    return to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(amount: Number, currency_suffix: str = "MXN") -> str:
    """
    Render an amount with thousands separators, two decimals and a currency suffix.

    Example:
        150000 -> "$150,000.00 MXN"
    """
    return f"${round_cents(amount):,.2f} {currency_suffix}"


def format_rate(annual_rate: Number) -> str:
    """Render an annual rate given as a fraction (0.15 -> "15.00%")"""
    rate = to_decimal(annual_rate)
    if rate == 0:
        return "No interest"
    return f"{rate * 100:.2f}%"
