"""Utility functions for ledgerpost."""

from ledgerpost.utils.date_parser import parse_date
from ledgerpost.utils.amount_parser import parse_amount
from ledgerpost.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_amount", "resolve_account"]
