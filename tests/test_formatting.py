from datetime import datetime

import pytest

from fareview.core.formatting import format_duration, format_hour, format_price, format_time


@pytest.mark.parametrize(
    "minutes,expected",
    [(150, "2h 30m"), (45, "45m"), (120, "2h"), (0, "0m"), (1441, "24h 1m")],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_format_price_uses_symbol_and_rounds():
    assert format_price(1234.4, "USD") == "$1,234"
    assert format_price(99.6, "eur") == "€100"


def test_format_price_keeps_unknown_codes():
    assert format_price(1234, "CHF") == "CHF 1,234"


def test_format_hour_and_time():
    assert format_hour(0) == "12 AM"
    assert format_hour(13) == "1 PM"
    assert format_time(datetime(2026, 3, 1, 9, 5)) == "9:05 AM"
