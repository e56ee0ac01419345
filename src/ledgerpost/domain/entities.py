"""Domain model entities for ledgerpost.

These are pure data classes representing accounting concepts, independent of
database schema. Services and generators only ever see these types; the
database layer decodes its rows into them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ledgerpost.domain.errors import ValidationError

ZERO = Decimal("0")
PAISA = Decimal("0.01")


def require_paisa(amount: Decimal, label: str) -> None:
    """Reject amounts finer than the ledger can store."""
    if Decimal(amount) != Decimal(amount).quantize(PAISA):
        raise ValidationError(f"{label} {amount} has more than 2 decimal places")


class AccountType(str, Enum):
    """Chart of accounts classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class EntryDirection(str, Enum):
    """Side of the ledger an entry is posted to."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    def opposite(self) -> "EntryDirection":
        return EntryDirection.CREDIT if self is EntryDirection.DEBIT else EntryDirection.DEBIT


class TransactionType(str, Enum):
    """Business event that produced a transaction."""

    CUSTOMER_INVOICE = "CUSTOMER_INVOICE"
    VENDOR_BILL = "VENDOR_BILL"
    CUSTOMER_PAYMENT = "CUSTOMER_PAYMENT"
    VENDOR_PAYMENT = "VENDOR_PAYMENT"
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    REVERSAL = "REVERSAL"


class TransactionStatus(str, Enum):
    """Transaction lifecycle status."""

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    VOID = "VOID"


class PaymentStatus(str, Enum):
    """How much of an invoice or bill posted payments have settled."""

    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class GSTType(str, Enum):
    """GST regime of a document.

    INTRA_STATE charges CGST + SGST, INTER_STATE charges IGST.
    """

    INTRA_STATE = "INTRA_STATE"
    INTER_STATE = "INTER_STATE"


class SystemAccountRole(str, Enum):
    """Semantic roles the posting logic needs concrete accounts for."""

    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    CGST_PAYABLE = "CGST_PAYABLE"
    SGST_PAYABLE = "SGST_PAYABLE"
    IGST_PAYABLE = "IGST_PAYABLE"
    CGST_INPUT = "CGST_INPUT"
    SGST_INPUT = "SGST_INPUT"
    IGST_INPUT = "IGST_INPUT"
    TDS_PAYABLE = "TDS_PAYABLE"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    SystemAccountRole.ACCOUNTS_RECEIVABLE: "Accounts Receivable",
    SystemAccountRole.ACCOUNTS_PAYABLE: "Accounts Payable",
    SystemAccountRole.REVENUE: "Revenue",
    SystemAccountRole.EXPENSE: "Expense",
    SystemAccountRole.CGST_PAYABLE: "CGST Payable",
    SystemAccountRole.SGST_PAYABLE: "SGST Payable",
    SystemAccountRole.IGST_PAYABLE: "IGST Payable",
    SystemAccountRole.CGST_INPUT: "CGST Input",
    SystemAccountRole.SGST_INPUT: "SGST Input",
    SystemAccountRole.IGST_INPUT: "IGST Input",
    SystemAccountRole.TDS_PAYABLE: "TDS Payable",
}


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry with its running totals."""

    id: int
    code: str
    name: str
    account_type: AccountType
    parent_id: Optional[int]
    is_gst_account: bool
    is_tds_account: bool
    is_system_account: bool
    is_active: bool
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal
    created_at: datetime

    @property
    def natural_balance(self) -> Decimal:
        """Balance expressed on the account type's normal side."""
        if self.account_type.is_debit_normal:
            return self.balance
        return -self.balance


@dataclass(frozen=True)
class LedgerEntry:
    """One debit or credit line of a transaction."""

    account_id: int
    direction: EntryDirection
    amount: Decimal
    memo: Optional[str] = None

    @property
    def debit(self) -> Decimal:
        return self.amount if self.direction is EntryDirection.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.amount if self.direction is EntryDirection.CREDIT else ZERO

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it moves the debit-minus-credit balance."""
        return self.amount if self.direction is EntryDirection.DEBIT else -self.amount


@dataclass(frozen=True)
class GSTDetails:
    """GST breakdown of a document.

    CGST/SGST and IGST are mutually exclusive and selected by gst_type.
    """

    gst_type: GSTType
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO

    def __post_init__(self):
        if self.gst_type is GSTType.INTRA_STATE and self.igst_amount:
            raise ValidationError("Intra-state GST cannot carry an IGST amount")
        if self.gst_type is GSTType.INTER_STATE and (self.cgst_amount or self.sgst_amount):
            raise ValidationError("Inter-state GST cannot carry CGST or SGST amounts")
        for name in ("cgst_amount", "sgst_amount", "igst_amount"):
            label = f"GST {name.split('_')[0].upper()} amount"
            if getattr(self, name) < 0:
                raise ValidationError(f"{label} cannot be negative")
            require_paisa(getattr(self, name), label)

    @property
    def total(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount + self.igst_amount


@dataclass(frozen=True)
class TDSDetails:
    """Tax deducted at source on a vendor bill."""

    section: str
    amount: Decimal

    def __post_init__(self):
        if self.amount < 0:
            raise ValidationError("TDS amount cannot be negative")
        require_paisa(self.amount, "TDS amount")


@dataclass(frozen=True)
class InvoiceInput:
    """Financial fields of a customer invoice."""

    date: date
    subtotal: Decimal
    gst: Optional[GSTDetails] = None
    customer: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None

    def __post_init__(self):
        require_paisa(self.subtotal, "Subtotal")

    @property
    def tax_amount(self) -> Decimal:
        return self.gst.total if self.gst else ZERO

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal + self.tax_amount


@dataclass(frozen=True)
class BillInput:
    """Financial fields of a vendor bill."""

    date: date
    subtotal: Decimal
    gst: Optional[GSTDetails] = None
    tds: Optional[TDSDetails] = None
    vendor: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None

    def __post_init__(self):
        require_paisa(self.subtotal, "Subtotal")

    @property
    def tax_amount(self) -> Decimal:
        return self.gst.total if self.gst else ZERO

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal + self.tax_amount

    @property
    def tds_amount(self) -> Decimal:
        return self.tds.amount if self.tds else ZERO

    @property
    def payable_amount(self) -> Decimal:
        """Amount owed to the vendor after withholding."""
        return self.total_amount - self.tds_amount


@dataclass(frozen=True)
class PaymentAllocation:
    """Part of a payment applied to one invoice or bill."""

    document_id: int
    amount: Decimal

    def __post_init__(self):
        if self.amount < 0:
            raise ValidationError(
                f"Allocation to transaction {self.document_id} cannot be negative"
            )
        require_paisa(self.amount, "Allocation amount")


@dataclass(frozen=True)
class PaymentInput:
    """Customer receipt or vendor payment through a bank/cash account.

    A payment can be split across several documents with allocations.
    allocated_to_id is shorthand for applying the whole amount to one
    document; it cannot be combined with allocations. Zero allocations
    are dropped.
    """

    date: date
    amount: Decimal
    bank_account_id: int
    counterparty: Optional[str] = None
    allocated_to_id: Optional[int] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    allocations: tuple[PaymentAllocation, ...] = ()

    def __post_init__(self):
        require_paisa(self.amount, "Payment amount")
        if self.allocated_to_id is not None:
            allocations = (PaymentAllocation(self.allocated_to_id, self.amount),)
            # dataclasses.replace passes the normalized allocations back in
            if self.allocations and self.allocations != allocations:
                raise ValidationError("Use either allocated_to_id or allocations, not both")
        else:
            allocations = tuple(a for a in self.allocations if a.amount)
        object.__setattr__(self, "allocations", allocations)

        seen = set()
        for allocation in allocations:
            if allocation.document_id in seen:
                raise ValidationError(
                    f"Transaction {allocation.document_id} is allocated more than once"
                )
            seen.add(allocation.document_id)
        if self.allocated_amount > self.amount:
            raise ValidationError(
                f"Allocations total {self.allocated_amount:,.2f} exceeds "
                f"payment amount {self.amount:,.2f}"
            )

    @property
    def allocated_amount(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)


@dataclass(frozen=True)
class JournalLine:
    """One line of a manual journal entry."""

    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    memo: Optional[str] = None

    def __post_init__(self):
        require_paisa(self.debit, f"Debit on account {self.account_id}")
        require_paisa(self.credit, f"Credit on account {self.account_id}")


@dataclass(frozen=True)
class JournalInput:
    """Manual journal entry."""

    date: date
    lines: tuple[JournalLine, ...]
    description: Optional[str] = None
    reference: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Posted business event together with its ledger entries."""

    id: int
    transaction_type: TransactionType
    date: date
    description: Optional[str]
    reference: Optional[str]
    status: TransactionStatus
    entries: tuple[LedgerEntry, ...]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    counterparty: Optional[str]
    related_transaction_id: Optional[int]
    gst_type: Optional[GSTType]
    tds_section: Optional[str]
    tds_amount: Decimal
    created_at: datetime
    updated_at: datetime
    void_reason: Optional[str] = None
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    allocations: tuple[PaymentAllocation, ...] = ()

    @property
    def gst(self) -> Optional[GSTDetails]:
        """GST breakdown as it was posted, or None for untaxed documents."""
        if self.gst_type is None:
            return None
        return GSTDetails(
            gst_type=self.gst_type,
            cgst_amount=self.cgst_amount,
            sgst_amount=self.sgst_amount,
            igst_amount=self.igst_amount,
        )

    @property
    def tds(self) -> Optional[TDSDetails]:
        if not self.tds_amount:
            return None
        return TDSDetails(section=self.tds_section or "", amount=self.tds_amount)

    @property
    def affects_balances(self) -> bool:
        """Drafts carry entries but never move account totals."""
        return self.status is not TransactionStatus.DRAFT


@dataclass(frozen=True)
class SystemAccounts:
    """Role to account ID lookup built for one posting operation."""

    accounts: dict[SystemAccountRole, Optional[int]] = field(default_factory=dict)

    def get(self, role: SystemAccountRole) -> Optional[int]:
        return self.accounts.get(role)

    def __getitem__(self, role: SystemAccountRole) -> int:
        account_id = self.accounts.get(role)
        if account_id is None:
            raise KeyError(role.value)
        return account_id


@dataclass(frozen=True)
class AccountResolution:
    """Resolved accounts plus the roles a transaction type still lacks."""

    accounts: SystemAccounts
    missing_roles: tuple[SystemAccountRole, ...]

    @property
    def is_complete(self) -> bool:
        return not self.missing_roles


@dataclass(frozen=True)
class BalanceCheck:
    """Outcome of summing an entry list by direction."""

    balanced: bool
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal


@dataclass(frozen=True)
class EntryValidation:
    """Full validation of an entry list, including line-level checks."""

    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    balance: BalanceCheck


@dataclass(frozen=True)
class TransactionChange:
    """Write event delivered to aggregation handlers.

    old is None on create; new is None on delete.
    """

    old: Optional[Transaction]
    new: Optional[Transaction]

    @property
    def transaction_id(self) -> Optional[int]:
        source = self.new or self.old
        return source.id if source else None


@dataclass(frozen=True)
class AccountBalanceChange:
    """Account whose stored totals differed from the recomputed ones."""

    account_id: int
    account_name: str
    old_debit: Decimal
    old_credit: Decimal
    new_debit: Decimal
    new_credit: Decimal

    @property
    def old_balance(self) -> Decimal:
        return self.old_debit - self.old_credit

    @property
    def new_balance(self) -> Decimal:
        return self.new_debit - self.new_credit


@dataclass(frozen=True)
class RecalculationReport:
    """Result of a full balance rebuild."""

    accounts_checked: int
    transactions_scanned: int
    changes: tuple[AccountBalanceChange, ...]

    @property
    def changed(self) -> bool:
        return bool(self.changes)


@dataclass(frozen=True)
class TrialBalanceLine:
    """One account row of a trial balance."""

    account_id: int
    code: str
    name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class TrialBalanceSection:
    """Accounts of one type with their subtotals."""

    account_type: AccountType
    lines: tuple[TrialBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance report with its integrity check."""

    as_of_date: Optional[date]
    sections: tuple[TrialBalanceSection, ...]
    total_debit: Decimal
    total_credit: Decimal

    @property
    def difference(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0

    @property
    def warning(self) -> Optional[str]:
        if self.is_balanced:
            return None
        return (
            f"Ledger integrity warning: total debits {self.total_debit:,.2f} "
            f"do not equal total credits {self.total_credit:,.2f} "
            f"(difference {self.difference:,.2f})"
        )


@dataclass(frozen=True)
class AccountLedgerLine:
    """One entry of an account ledger with the balance after it."""

    transaction_id: int
    transaction_type: TransactionType
    date: date
    description: Optional[str]
    memo: Optional[str]
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """Chronological entries of one account."""

    account: Account
    start_date: Optional[date]
    end_date: Optional[date]
    opening_balance: Decimal
    lines: tuple[AccountLedgerLine, ...]

    @property
    def closing_balance(self) -> Decimal:
        if self.lines:
            return self.lines[-1].running_balance
        return self.opening_balance

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)
