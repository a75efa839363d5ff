"""
Monetary precision helpers.

Money is always Decimal. Amounts sent to payment providers are converted to
integer minor units (cents) after quantizing.
"""

from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP
from typing import Union

CURRENCY_EXPONENT = {
    "USD": 2,
    "CAD": 2,
    "EUR": 2,
    "GBP": 2,
    "JPY": 0,
}

ZERO = Decimal("0.00")


def currency_exponent(currency: str) -> int:
    """
    Number of decimal places for a currency. Unknown currencies use 2.

        >>> currency_exponent("USD")
        2
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def quantize(currency: str, amount: Union[Decimal, str, int, float], rounding=ROUND_HALF_EVEN) -> Decimal:
    """
    Round to currency decimals, banker's rounding unless told otherwise.

        >>> quantize("USD", "10.125")
        Decimal('10.12')
        >>> quantize("USD", "10.125", rounding=ROUND_HALF_UP)
        Decimal('10.13')
    """
    if isinstance(amount, float):
        # Convert float to string first to avoid precision issues
        amount = str(amount)

    exponent = currency_exponent(currency)
    return Decimal(amount).quantize(Decimal(1).scaleb(-exponent), rounding=rounding)


def round_half_up(amount: Union[Decimal, str, int, float], currency: str = "USD") -> Decimal:
    """Commercial rounding, used for commissions."""
    return quantize(currency, amount, rounding=ROUND_HALF_UP)


def to_minor(currency: str, amount: Union[Decimal, str, int, float]) -> int:
    """
    Convert to minor units (e.g., cents) after quantization.

        >>> to_minor("USD", "10.127")
        1013
    """
    quantized = quantize(currency, amount)
    exponent = currency_exponent(currency)
    return int((quantized * (10 ** exponent)).to_integral_value())


def from_minor(currency: str, minor: int) -> Decimal:
    """
    Convert from minor units to Decimal.

        >>> from_minor("USD", 1013)
        Decimal('10.13')
    """
    return quantize(currency, Decimal(minor).scaleb(-currency_exponent(currency)))
