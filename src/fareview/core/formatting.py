# src/fareview/core/formatting.py

from __future__ import annotations

from datetime import datetime


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}


def format_duration(minutes: int) -> str:
    """150 -> '2h 30m', 45 -> '45m', 120 -> '2h'."""
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_price(price: float, currency: str = "USD") -> str:
    """Whole-unit price with a currency symbol; unknown currencies keep their code."""
    code = (currency or "USD").upper()
    amount = f"{float(price):,.0f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{amount}"
    return f"{code} {amount}"


def format_hour(hour: int) -> str:
    """0 -> '12 AM', 13 -> '1 PM'."""
    return datetime(2000, 1, 1, int(hour)).strftime("%I %p").lstrip("0")


def format_time(dt: datetime) -> str:
    return dt.strftime("%I:%M %p").lstrip("0")
