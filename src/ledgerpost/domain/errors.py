"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Any, Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or illegal status changes."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ConfigurationError(DomainError):
    """The chart of accounts is missing something posting depends on."""


class MissingSystemAccountsError(ConfigurationError):
    """One or more system account roles could not be resolved."""

    def __init__(self, missing_roles: Iterable[Any]):
        self.missing_roles = tuple(missing_roles)
        super().__init__(missing_system_accounts(self.missing_roles))


class BalanceIntegrityError(DomainError):
    """Generated entries do not satisfy the double-entry balance law."""


class UnbalancedEntriesError(BalanceIntegrityError):
    """Entry validation failed; carries the computed totals."""

    def __init__(self, validation: Any):
        self.validation = validation
        balance = validation.balance
        self.total_debit = balance.total_debit
        self.total_credit = balance.total_credit
        super().__init__(
            unbalanced_entries(balance.total_debit, balance.total_credit, validation.errors)
        )


class ConcurrentUpdateError(DomainError):
    """Account totals changed underneath an aggregation write."""


class PersistenceError(DomainError):
    """The store failed to apply a write; nothing was committed."""


class DecodingError(DomainError):
    """A stored record could not be decoded into a domain entity."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_account_name(name: str) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists"


def duplicate_account_code(code: str) -> str:
    """Return message for duplicate account code."""
    return f"Account with code '{code}' already exists"


def account_delete_blocked(account_id: int, entry_count: int) -> str:
    """Return message when ledger entries still reference an account."""
    return (
        f"Cannot delete account {account_id}: it has {entry_count} "
        f"ledger entr{'ies' if entry_count != 1 else 'y'}. "
        "Deactivate it instead."
    )


def missing_system_accounts(missing_roles: Iterable[Any]) -> str:
    """Return message listing unresolved system account roles."""
    labels = [getattr(role, "label", str(role)) for role in missing_roles]
    return (
        "Required accounts not found in Chart of Accounts: "
        f"{', '.join(labels)}"
    )


def unbalanced_entries(
    total_debit: Decimal, total_credit: Decimal, errors: Iterable[str] = ()
) -> str:
    """Return message describing an entry list that cannot be saved."""
    difference = total_debit - total_credit
    message = (
        f"Ledger entries are not valid: total debits {total_debit:,.2f}, "
        f"total credits {total_credit:,.2f} (difference {difference:,.2f})"
    )
    details = [error for error in errors]
    if details:
        message += ": " + "; ".join(details)
    return message


def illegal_status(transaction_id: int, status: Any, action: str) -> str:
    """Return message when a transaction's status forbids an action."""
    status_name = getattr(status, "value", status)
    return f"Cannot {action} transaction {transaction_id}: status is {status_name}"
