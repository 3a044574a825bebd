from decimal import Decimal

import pytest

from storefront_server.errors import PriceFormatError
from storefront_server.money import format_price, parse_price


@pytest.mark.parametrize(
    "value, expected",
    [
        ("$12.00", Decimal("12.00")),
        ("12.50", Decimal("12.50")),
        (" $ 7 ", Decimal("7")),
        ("$1,299.99", Decimal("1299.99")),
        (10, Decimal("10")),
        (19.99, Decimal("19.99")),
    ],
)
def test_parse_price_accepts_display_strings_and_numbers(value, expected) -> None:
    assert parse_price(value) == expected


@pytest.mark.parametrize("value", ["", "$", "abc", "$-5", "NaN", "1e30", "$1e30", None, True, [1]])
def test_parse_price_rejects_malformed_values(value) -> None:
    with pytest.raises(PriceFormatError):
        parse_price(value)


def test_format_price_rounds_to_cents() -> None:
    assert format_price(Decimal("25")) == "$25.00"
    assert format_price(Decimal("3.5")) == "$3.50"
