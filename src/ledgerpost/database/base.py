"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerpost.domain.entities import (
    Account,
    AccountType,
    GSTType,
    LedgerEntry,
    PaymentAllocation,
    Transaction,
    TransactionStatus,
    TransactionType,
)

# account_id -> (debit amount, credit amount)
TotalsByAccount = Mapping[int, tuple[Decimal, Decimal]]


class Database(ABC):
    """Abstract database interface for ledgerpost.

    Instances are passed explicitly to every service that needs storage.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        parent_id: Optional[int] = None,
        is_gst_account: bool = False,
        is_tds_account: bool = False,
        is_system_account: bool = False,
    ) -> int:
        """Create a new account with zero totals. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        """Get account by exact name."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by code."""
        pass

    @abstractmethod
    def list_accounts(self, include_inactive: bool = True) -> list[Account]:
        """List accounts ordered by code."""
        pass

    @abstractmethod
    def list_accounts_by_type(self, account_type: AccountType, include_inactive: bool = False) -> list[Account]:
        """List accounts of one type ordered by code."""
        pass

    @abstractmethod
    def list_accounts_by_flag(self, flag: str, include_inactive: bool = False) -> list[Account]:
        """List accounts whose boolean flag (e.g. 'is_gst_account') is set."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        """Update descriptive fields of an account. Never touches totals."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def count_entries_for_account(self, account_id: int) -> int:
        """Count ledger entries referencing an account."""
        pass

    # Balance operations
    @abstractmethod
    def apply_balance_deltas(self, deltas: TotalsByAccount) -> None:
        """Add debit/credit deltas to account totals as one atomic write.

        Raises:
            ConcurrentUpdateError: If any account changed since it was read
            PersistenceError: If the write fails for any other reason
        """
        pass

    @abstractmethod
    def replace_account_totals(self, totals: TotalsByAccount) -> None:
        """Overwrite debit/credit totals of the given accounts as one atomic write."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        transaction_type: TransactionType,
        date: date,
        status: TransactionStatus,
        entries: Sequence[LedgerEntry],
        subtotal: Decimal,
        tax_amount: Decimal,
        total_amount: Decimal,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        counterparty: Optional[str] = None,
        related_transaction_id: Optional[int] = None,
        gst_type: Optional[GSTType] = None,
        tds_section: Optional[str] = None,
        tds_amount: Decimal = Decimal("0"),
        cgst_amount: Decimal = Decimal("0"),
        sgst_amount: Decimal = Decimal("0"),
        igst_amount: Decimal = Decimal("0"),
        allocations: Sequence[PaymentAllocation] = (),
    ) -> int:
        """Create a transaction together with its entries and allocations.

        Returns transaction ID.
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, including its entries."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        entries: Sequence[LedgerEntry],
        fields: Mapping[str, Any],
        status: Optional[TransactionStatus] = None,
    ) -> None:
        """Replace a transaction's entries and header fields in one write.

        fields may carry "allocations" to replace a payment's allocations.
        A status, when given, is changed in the same write.
        """
        pass

    @abstractmethod
    def update_transaction_status(
        self,
        transaction_id: int,
        status: TransactionStatus,
        void_reason: Optional[str] = None,
    ) -> None:
        """Change a transaction's status."""
        pass

    @abstractmethod
    def void_transaction(
        self,
        transaction_id: int,
        void_reason: str,
        reversal: Mapping[str, Any],
        replacement: Optional[Mapping[str, Any]] = None,
    ) -> tuple[int, Optional[int]]:
        """Mark a transaction VOID and insert its reversal in one commit.

        reversal and replacement hold create_transaction arguments. The
        optional replacement is inserted in the same commit.

        Returns:
            (reversal ID, replacement ID or None)
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and its entries."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        statuses: Optional[Sequence[TransactionStatus]] = None,
        account_id: Optional[int] = None,
        related_transaction_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions in ledger order (date, then ID).

        Args:
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            transaction_type: Optional type filter
            statuses: Optional status filter
            account_id: Only transactions with an entry on this account
            related_transaction_id: Only transactions linked to this one
        """
        pass

    @abstractmethod
    def list_payments_for(
        self, document_id: int, statuses: Optional[Sequence[TransactionStatus]] = None
    ) -> list[Transaction]:
        """Payments with an allocation to a document, in ledger order."""
        pass
