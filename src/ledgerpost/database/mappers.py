"""Mapper functions to convert between domain models and SQLAlchemy models.

Rows are decoded, not cast: an enum value or amount that does not fit the
domain model raises DecodingError instead of leaking into the ledger.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, TypeVar

from ledgerpost.domain import entities as domain
from ledgerpost.domain.errors import DecodingError
from ledgerpost.database.models import (
    Account as ORMAccount,
    LedgerEntry as ORMLedgerEntry,
    PaymentAllocation as ORMPaymentAllocation,
    Transaction as ORMTransaction,
)

E = TypeVar("E", bound=Enum)


def _decode_enum(enum_cls: type[E], value: Optional[str], field: str, record: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise DecodingError(f"{record}: invalid {field} {value!r}") from None


def _money(value: Optional[Decimal]) -> Decimal:
    if value is None:
        return domain.ZERO
    return Decimal(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    record = f"Account {orm_account.id}"
    debit_total = _money(orm_account.debit_total)
    credit_total = _money(orm_account.credit_total)
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=_decode_enum(domain.AccountType, orm_account.account_type, "account type", record),
        parent_id=orm_account.parent_id,
        is_gst_account=bool(orm_account.is_gst_account),
        is_tds_account=bool(orm_account.is_tds_account),
        is_system_account=bool(orm_account.is_system_account),
        is_active=bool(orm_account.is_active),
        debit_total=debit_total,
        credit_total=credit_total,
        balance=debit_total - credit_total,
        created_at=orm_account.created_at,
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    record = f"Ledger entry {orm_entry.id}"
    amount = _money(orm_entry.amount)
    if amount <= 0:
        raise DecodingError(f"{record}: amount must be positive, got {amount}")
    return domain.LedgerEntry(
        account_id=orm_entry.account_id,
        direction=_decode_enum(domain.EntryDirection, orm_entry.direction, "direction", record),
        amount=amount,
        memo=orm_entry.memo,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    record = f"Transaction {orm_transaction.id}"
    gst_type = None
    if orm_transaction.gst_type is not None:
        gst_type = _decode_enum(domain.GSTType, orm_transaction.gst_type, "GST type", record)
    return domain.Transaction(
        id=orm_transaction.id,
        transaction_type=_decode_enum(
            domain.TransactionType, orm_transaction.transaction_type, "transaction type", record
        ),
        date=orm_transaction.date,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        status=_decode_enum(domain.TransactionStatus, orm_transaction.status, "status", record),
        entries=tuple(ledger_entry_to_domain(entry) for entry in orm_transaction.entries),
        subtotal=_money(orm_transaction.subtotal),
        tax_amount=_money(orm_transaction.tax_amount),
        total_amount=_money(orm_transaction.total_amount),
        counterparty=orm_transaction.counterparty,
        related_transaction_id=orm_transaction.related_transaction_id,
        gst_type=gst_type,
        tds_section=orm_transaction.tds_section,
        tds_amount=_money(orm_transaction.tds_amount),
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        void_reason=orm_transaction.void_reason,
        cgst_amount=_money(orm_transaction.cgst_amount),
        sgst_amount=_money(orm_transaction.sgst_amount),
        igst_amount=_money(orm_transaction.igst_amount),
        allocations=tuple(
            domain.PaymentAllocation(document_id=allocation.document_id, amount=_money(allocation.amount))
            for allocation in orm_transaction.allocations
        ),
    )


def ledger_entry_to_orm(entry: domain.LedgerEntry, position: int) -> ORMLedgerEntry:
    """Build an ORM row for a domain entry at a given position."""
    return ORMLedgerEntry(
        position=position,
        account_id=entry.account_id,
        direction=entry.direction.value,
        amount=entry.amount,
        memo=entry.memo,
    )


def allocation_to_orm(allocation: domain.PaymentAllocation) -> ORMPaymentAllocation:
    """Build an ORM row for one payment allocation."""
    return ORMPaymentAllocation(document_id=allocation.document_id, amount=allocation.amount)
