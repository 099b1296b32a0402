"""
Currency Formatting

The only place amounts become display strings. Currency is always
passed in explicitly; there is no module-level "current currency".
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from finsmart.models.ledger import UserSettings

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

DEFAULT_SYMBOL = "$"

_CENTS = Decimal("0.01")


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code. Unknown codes fall back to the dollar sign."""
    return CURRENCY_SYMBOLS.get(currency.upper(), DEFAULT_SYMBOL)


def format_amount(
    amount: Union[Decimal, int, float],
    settings: Union[UserSettings, str],
) -> str:
    """
    Render an amount with symbol, thousands separators and two decimals.

    Examples:
        format_amount(Decimal("1234.5"), "USD") -> "$1,234.50"
        format_amount(Decimal("-60"), "GBP") -> "-£60.00"
    """
    currency = settings.currency if isinstance(settings, UserSettings) else settings
    value = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(value):,.2f}"
