"""Output formatting helpers."""

from decimal import Decimal
from typing import Optional


def format_amount(amount: Optional[Decimal], blank_zero: bool = False) -> str:
    """Format a money amount with thousands separators and two decimals."""
    if amount is None or (blank_zero and amount == 0):
        return ""
    return f"{amount:,.2f}"
