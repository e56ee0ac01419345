"""Double-entry balance validation."""

from decimal import Decimal
from typing import Sequence

from ledgerpost.domain.entities import (
    BalanceCheck,
    EntryDirection,
    EntryValidation,
    LedgerEntry,
    ZERO,
)
from ledgerpost.domain.tax import round_money

# Absorbs sub-cent drift from amounts computed outside this package.
BALANCE_TOLERANCE = Decimal("0.01")

MAX_ENTRIES_BEFORE_WARNING = 20


def validate_balance(entries: Sequence[LedgerEntry]) -> BalanceCheck:
    """Sum entries by direction and report whether they balance.

    Never raises; an empty list is trivially balanced.

    Args:
        entries: Ledger entries to check

    Returns:
        BalanceCheck with two-place totals and the debit minus credit difference
    """
    total_debit = sum((e.amount for e in entries if e.direction is EntryDirection.DEBIT), ZERO)
    total_credit = sum((e.amount for e in entries if e.direction is EntryDirection.CREDIT), ZERO)
    difference = total_debit - total_credit
    return BalanceCheck(
        balanced=abs(difference) < BALANCE_TOLERANCE,
        total_debit=round_money(total_debit),
        total_credit=round_money(total_credit),
        difference=round_money(difference),
    )


def validate_entry(entry: LedgerEntry) -> list[str]:
    """Line-level checks for a single entry."""
    errors = []
    if not entry.account_id:
        errors.append("Account is required")
    if entry.amount < 0:
        errors.append("Amount cannot be negative")
    elif entry.amount == 0:
        errors.append("Amount must be greater than zero")
    return errors


def validate_entries(entries: Sequence[LedgerEntry]) -> EntryValidation:
    """Validate an entry list before it is persisted.

    Checks there are at least two entries, every entry is well formed, and
    debits equal credits within BALANCE_TOLERANCE. Warnings never block a save.
    """
    entries = list(entries or [])
    errors: list[str] = []
    warnings: list[str] = []

    if not entries:
        errors.append("At least one ledger entry is required")
    elif len(entries) < 2:
        errors.append("At least two ledger entries are required for double-entry bookkeeping")

    for index, entry in enumerate(entries, start=1):
        errors.extend(f"Entry {index}: {error}" for error in validate_entry(entry))

    balance = validate_balance(entries)
    if entries and not balance.balanced:
        errors.append(
            f"Total debits ({balance.total_debit:,.2f}) must equal "
            f"total credits ({balance.total_credit:,.2f})"
        )

    if len(entries) > MAX_ENTRIES_BEFORE_WARNING:
        warnings.append("Large number of entries. Consider splitting into multiple journal entries.")
    account_ids = [entry.account_id for entry in entries]
    if len(set(account_ids)) != len(account_ids):
        warnings.append("Multiple entries for the same account detected. This may be intentional.")

    return EntryValidation(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
        balance=balance,
    )
