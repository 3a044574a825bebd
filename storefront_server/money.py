"""Price parsing and formatting.

Catalog prices arrive as display strings such as ``"$12.00"``. They are
parsed once into :class:`~decimal.Decimal` at ingestion and only turned back
into strings for display and persistence.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import PriceFormatError

CURRENCY_SYMBOL = "$"
CENT = Decimal("0.01")


def parse_price(value: Any) -> Decimal:
    """Parse a price given as a number or a currency string.

    A leading currency symbol is optional; surrounding whitespace and
    thousands separators are ignored.

    Raises:
        PriceFormatError: If the value is not a finite, non-negative amount
    """
    if isinstance(value, bool):
        raise PriceFormatError(value)
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if text.startswith(CURRENCY_SYMBOL):
            text = text[len(CURRENCY_SYMBOL):].strip()
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise PriceFormatError(value) from None
    else:
        raise PriceFormatError(value)

    if not amount.is_finite() or amount < 0:
        raise PriceFormatError(value)
    # Amounts must be representable in cents for display and persistence
    try:
        amount.quantize(CENT)
    except InvalidOperation:
        raise PriceFormatError(value) from None
    return amount


def format_price(amount: Decimal) -> str:
    """Format an amount as a display string, e.g. ``Decimal("25") -> "$25.00"``."""
    return f"{CURRENCY_SYMBOL}{amount.quantize(CENT)}"


def sum_prices(prices: Iterable[Decimal]) -> Decimal:
    return sum(prices, Decimal("0"))
