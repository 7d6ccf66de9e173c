"""Currency formatting and the fixed INR/NPR exchange constant."""

from decimal import Decimal
from typing import Any

from lendbook.engine.money import quantize_cents, to_decimal
from lendbook.exceptions import ComputationError

CURRENCY_SYMBOLS = {
    "USD": "$",
    "INR": "₹",
    "NPR": "₨",
    "EUR": "€",
    "GBP": "£",
}

# 1 INR = 1.6 NPR (fixed, not fetched)
INR_TO_NPR_RATE = Decimal("1.6")


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code; unknown codes fall back to ``$``."""
    return CURRENCY_SYMBOLS.get(currency.upper(), "$")


def format_currency(amount: Any, currency: str = "USD") -> str:
    """Format an amount as e.g. ``$1,059.84`` or ``-₹250.00``.

    Raises
    ------
    ComputationError
        If the amount is not a finite number.
    """
    value = quantize_cents(to_decimal(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(value):,.2f}"


def convert_dual_currency(amount: Any, from_currency: str, to_currency: str) -> Decimal:
    """Convert between INR and NPR at the fixed rate, rounded to cents."""
    pair = (from_currency.upper(), to_currency.upper())
    value = to_decimal(amount)
    if pair[0] == pair[1]:
        return value
    if pair == ("INR", "NPR"):
        return quantize_cents(value * INR_TO_NPR_RATE)
    if pair == ("NPR", "INR"):
        return quantize_cents(value / INR_TO_NPR_RATE)
    raise ComputationError(f"No fixed rate for {pair[0]} -> {pair[1]}")
