"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def rounded_product(amount: float, rate: float) -> float:
    """Return ``amount * rate`` rounded to whole yen, halves away from zero.

    The product is taken on the decimal representations of the operands so
    that cases such as ``1000 * 0.1945`` land on an exact ``.5``. Rounding to
    an integral value has no precision ceiling, so any finite float is safe.
    """

    product = Decimal(repr(amount)) * Decimal(repr(rate))
    return float(product.to_integral_value(rounding=ROUND_HALF_UP))


def to_percentage(rate: float) -> float:
    """Express a fractional ``rate`` on the 0-100 scale."""

    return round(rate * 100, 4)


def format_percentage(value: float) -> str:
    """Return a human-readable percentage label for a fractional ``value``."""

    percentage = to_percentage(value)
    if float(int(percentage)) == percentage:
        return f"{int(percentage)}%"
    return f"{percentage:.2f}%"


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals for API payloads."""

    return round(float(value), 2)


def format_yen(value: float) -> str:
    """Format a yen amount with thousands separators (e.g. ``1,540,000円``)."""

    amount = round_currency(value)
    if amount.is_integer():
        return f"{int(amount):,}円"
    return f"{amount:,.2f}円"


__all__ = [
    "format_percentage",
    "format_yen",
    "round_currency",
    "rounded_product",
    "to_percentage",
]
