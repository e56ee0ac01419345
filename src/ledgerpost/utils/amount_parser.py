"""Amount parsing utilities.

Ledger amounts are stored to the paisa, so parsed money is held to two
decimal places. Rates (GST percentages) are parsed with places=None.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional
import re

MONEY_PLACES = 2

_CURRENCY_PREFIX = re.compile(r"(?i)^\s*(-?)\s*(?:inr|rs\.?|[₹$€£])\s*")
# Indian (1,23,456) or western (123,456) grouping
_GROUPED = re.compile(r"^-?(?:\d{1,3}(?:,\d{2})*,\d{3}|\d{1,3}(?:,\d{3})+)(?:\.\d*)?$")


def decimal_places(amount: Decimal) -> int:
    """Number of digits after the decimal point, ignoring trailing zeros."""
    exponent = amount.normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def parse_amount(amount_str: str, places: Optional[int] = MONEY_PLACES) -> Decimal:
    """Parse an amount string into a Decimal.

    Accepts "123.45", "-123.45", "₹123.45", "Rs. 123.45", "INR 123.45",
    digit grouping such as "1,23,456.78" or "1,234.56", and "(123.45)"
    for negatives.

    Args:
        amount_str: Amount string
        places: Most decimal places allowed; None for no limit

    Raises:
        ValueError: If the string is not a finite number, its grouping is
            malformed, or it is more precise than places
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    is_negative = text.startswith("(") and text.endswith(")")
    if is_negative:
        text = text[1:-1]

    text = _CURRENCY_PREFIX.sub(r"\1", text).strip()
    if "," in text:
        if not _GROUPED.match(text):
            raise ValueError(f"Could not parse amount '{amount_str.strip()}'")
        text = text.replace(",", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str.strip()}'") from None
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str.strip()}'")
    if places is not None and decimal_places(amount) > places:
        raise ValueError(
            f"Amount '{amount_str.strip()}' has more than {places} decimal places"
        )
    return -amount if is_negative else amount
