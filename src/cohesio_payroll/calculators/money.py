"""Fixed-precision money parsing, rounding and formatting.

Every monetary figure in the engine is a ``Decimal`` rounded half-up to
cents. ``parse_money`` backs live-editing forms, so it never raises: input
it cannot read is treated as zero.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Money = Decimal
MoneyInput = Union[str, int, float, Decimal, None]

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

CURRENCY_SYMBOL = "MAD"
# fr-MA groups thousands with a narrow no-break space
GROUP_SEPARATOR = "\u202f"
DECIMAL_SEPARATOR = ","

_NOISE = re.compile(r"[^0-9,.\-]")
_DECIMAL_COMMA = re.compile(r",\d{1,2}$")
_NUMBER = re.compile(r"\d*\.?\d*")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents), half-up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _normalize(text: str) -> str | None:
    """Reduce a locale-formatted amount to a plain ``Decimal`` literal."""
    cleaned = _NOISE.sub("", text)
    negative = cleaned.startswith("-")
    body = cleaned[1:] if negative else cleaned
    if "-" in body:
        return None

    if _DECIMAL_COMMA.search(body):
        # "1.234,56": comma is the decimal mark, dots group thousands
        head, _, tail = body.replace(".", "").rpartition(",")
        body = f"{head.replace(',', '')}.{tail}"
    else:
        body = body.replace(",", "")
        if body.count(".") > 1:
            body = body.replace(".", "")

    if not _NUMBER.fullmatch(body) or not any(c.isdigit() for c in body):
        return None
    return f"-{body}" if negative else body


def parse_money(value: MoneyInput) -> Money:
    """Parse a number or locale-formatted string into cents.

    Accepts thousands separators (space, comma, dot, apostrophe), a trailing
    or leading currency symbol, and a decimal comma. A comma followed by one
    or two trailing digits is read as the decimal separator. Empty or
    unreadable input yields ``0.00``.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            literal = _normalize(value)
            if literal is None:
                return ZERO
            amount = Decimal(literal)
        else:
            return ZERO
        if not amount.is_finite():
            return ZERO
        # More digits than the context precision cannot be quantized
        return round_to_cents(amount)
    except InvalidOperation:
        return ZERO


def format_money(value: MoneyInput) -> str:
    """Render an amount as ``1 234,50 MAD`` (2 decimals, half-up)."""
    amount = parse_money(value)
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,.2f}"
    body = grouped.replace(",", GROUP_SEPARATOR).replace(".", DECIMAL_SEPARATOR)
    return f"{sign}{body} {CURRENCY_SYMBOL}"
