from __future__ import annotations

from decimal import Decimal


def format_currency(value: Decimal) -> str:
    cents = value.quantize(Decimal("0.01"))
    return f"{cents:,.2f}"


def format_signed_currency(value: Decimal) -> str:
    if value < 0:
        return f"-{format_currency(-value)}"
    return format_currency(value)
