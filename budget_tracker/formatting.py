"""
Display formatting for amounts and dates.

Pure functions, no side effects. Output matches en-US conventions:
grouping commas, two decimals, the sign before the currency symbol.
"""

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, getcontext, localcontext
from typing import Optional, Union


Number = Union[int, float, Decimal]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
}

_ONE = Decimal("1")
_TENTH = Decimal("0.1")
_CENT = Decimal("0.01")


def currency_symbol(currency: str = "USD") -> str:
    """
    Symbol shown in front of amounts.

    Unknown but well-formed codes are shown as the code itself followed
    by a non-breaking space; malformed codes fall back to USD.
    """
    code = (currency or "").upper()
    if code in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[code]
    if len(code) == 3 and code.isalpha():
        return f"{code}\u00a0"
    return CURRENCY_SYMBOLS["USD"]


def _to_decimal(amount: Optional[Number], exact: bool) -> Optional[Decimal]:
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, float):
        if not math.isfinite(amount):
            return None
        # exact: the binary value itself; otherwise its shortest decimal form
        value = Decimal(amount) if exact else Decimal(repr(amount))
    else:
        value = Decimal(amount)
    if not value.is_finite():
        return None
    return value


def _round(value: Decimal, step: Decimal, divisor: int = 1) -> Decimal:
    """
    Divide by divisor, then round half away from zero to step.

    Runs in a local context wide enough for every whole digit of value,
    so arbitrarily large amounts never overflow the default precision.
    """
    context = getcontext().copy()
    context.prec = max(context.prec, value.adjusted() - step.as_tuple().exponent + 2)
    with localcontext(context):
        return (value / divisor).quantize(step, rounding=ROUND_HALF_UP)


def format_currency(
    amount: Optional[Number],
    abbreviated: bool = False,
    currency: str = "USD",
) -> str:
    """
    Format an amount for display.

    Abbreviated:
        0 → "$0", 1500 → "$1.5k", 2500000 → "$2.5M", 42 → "$42"
    Full:
        1234.5 → "$1,234.50", -3 → "-$3.00"

    Missing or NaN amounts render as zero.
    """
    symbol = currency_symbol(currency)

    if abbreviated:
        value = _to_decimal(amount, exact=True)
        if value is None or value == 0:
            return f"{symbol}0"
        if abs(value) >= 1_000_000:
            return f"{symbol}{_round(value, _TENTH, divisor=1_000_000)}M"
        if abs(value) >= 1000:
            return f"{symbol}{_round(value, _TENTH, divisor=1000)}k"
        return f"{symbol}{_round(value, _ONE)}"

    value = _to_decimal(amount, exact=False)
    if value is None:
        return f"{symbol}0.00"

    rounded = _round(value, _CENT)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{rounded.copy_abs():,.2f}"


def format_date(value: Union[date, str]) -> str:
    """
    Format a date like "Jan 15, 2024".

    ISO strings are accepted; anything unparseable is returned unchanged.
    """
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return f"{value.strftime('%b')} {value.day}, {value.year}"
