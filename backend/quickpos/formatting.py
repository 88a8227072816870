# Overview: Display helpers for money and timestamps (pt-BR conventions).

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from .time_utils import parse_iso_datetime

CURRENCY_SYMBOL = "R$"
NBSP = "\u00a0"


def format_currency(value) -> str:
    """
    Render an amount as Brazilian reais: R$ 1.000,50.

    Thousands are grouped with '.', decimals use ',', the symbol is followed
    by a non-breaking space and negatives carry a leading minus.
    """
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,.2f}"
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{CURRENCY_SYMBOL}{NBSP}{localized}"


def format_date(value: str | datetime | None) -> str:
    """Render a timestamp as dd/mm/YYYY HH:MM (UTC)."""
    if value is None:
        return ""
    dt = parse_iso_datetime(value) if isinstance(value, str) else value
    return dt.strftime("%d/%m/%Y %H:%M")
