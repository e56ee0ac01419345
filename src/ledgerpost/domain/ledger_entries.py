"""Ledger entry generation for each transaction type.

Every generator is a pure function of the document's financial fields and
the already-resolved system accounts. Generators do not validate: callers
resolve accounts first and run the balance validator afterwards.

Zero-amount lines are left out, so an untaxed document still produces a
two-entry balanced list.
"""

from decimal import Decimal
from typing import Optional, Sequence, Union

from ledgerpost.domain.entities import (
    BillInput,
    EntryDirection,
    GSTDetails,
    GSTType,
    InvoiceInput,
    JournalInput,
    LedgerEntry,
    PaymentInput,
    SystemAccountRole as Role,
    SystemAccounts,
    TransactionType,
)

REVERSAL_PREFIX = "[REVERSAL]"

FinancialFields = Union[InvoiceInput, BillInput, PaymentInput, JournalInput]


def _entry(
    entries: list[LedgerEntry],
    account_id: int,
    direction: EntryDirection,
    amount: Decimal,
    memo: Optional[str],
) -> None:
    if amount:
        entries.append(LedgerEntry(account_id=account_id, direction=direction, amount=amount, memo=memo))


def _gst_lines(
    gst: Optional[GSTDetails],
    cgst_role: Role,
    sgst_role: Role,
    igst_role: Role,
) -> list[tuple[Role, Decimal, str]]:
    """Tax component lines for the document's GST regime."""
    if gst is None:
        return []
    if gst.gst_type is GSTType.INTRA_STATE:
        return [(cgst_role, gst.cgst_amount, "CGST"), (sgst_role, gst.sgst_amount, "SGST")]
    return [(igst_role, gst.igst_amount, "IGST")]


def generate_invoice_entries(fields: InvoiceInput, accounts: SystemAccounts) -> list[LedgerEntry]:
    """Entries for a customer invoice.

    Dr Accounts Receivable  gross total
        Cr Revenue          subtotal
        Cr CGST + SGST payable, or Cr IGST payable
    """
    entries: list[LedgerEntry] = []
    _entry(entries, accounts[Role.ACCOUNTS_RECEIVABLE], EntryDirection.DEBIT, fields.total_amount, "Invoice raised")
    _entry(entries, accounts[Role.REVENUE], EntryDirection.CREDIT, fields.subtotal, "Revenue from invoice")
    for role, amount, label in _gst_lines(fields.gst, Role.CGST_PAYABLE, Role.SGST_PAYABLE, Role.IGST_PAYABLE):
        if amount:
            _entry(entries, accounts[role], EntryDirection.CREDIT, amount, f"{label} on invoice")
    return entries


def generate_bill_entries(fields: BillInput, accounts: SystemAccounts) -> list[LedgerEntry]:
    """Entries for a vendor bill.

    Dr Expense              subtotal
    Dr CGST + SGST input, or Dr IGST input
        Cr Accounts Payable gross total less TDS
        Cr TDS Payable      withheld amount
    """
    entries: list[LedgerEntry] = []
    _entry(entries, accounts[Role.EXPENSE], EntryDirection.DEBIT, fields.subtotal, "Expense from bill")
    for role, amount, label in _gst_lines(fields.gst, Role.CGST_INPUT, Role.SGST_INPUT, Role.IGST_INPUT):
        if amount:
            _entry(entries, accounts[role], EntryDirection.DEBIT, amount, f"{label} input tax credit")
    _entry(
        entries,
        accounts[Role.ACCOUNTS_PAYABLE],
        EntryDirection.CREDIT,
        fields.payable_amount,
        "Amount payable to vendor",
    )
    if fields.tds_amount:
        section = f" u/s {fields.tds.section}" if fields.tds and fields.tds.section else ""
        _entry(
            entries,
            accounts[Role.TDS_PAYABLE],
            EntryDirection.CREDIT,
            fields.tds_amount,
            f"TDS deducted on bill{section}",
        )
    return entries


def generate_customer_payment_entries(fields: PaymentInput, accounts: SystemAccounts) -> list[LedgerEntry]:
    """Entries for money received from a customer.

    Dr Bank
        Cr Accounts Receivable
    """
    entries: list[LedgerEntry] = []
    _entry(entries, fields.bank_account_id, EntryDirection.DEBIT, fields.amount, "Customer payment received")
    _entry(
        entries,
        accounts[Role.ACCOUNTS_RECEIVABLE],
        EntryDirection.CREDIT,
        fields.amount,
        "Payment against invoice",
    )
    return entries


def generate_vendor_payment_entries(fields: PaymentInput, accounts: SystemAccounts) -> list[LedgerEntry]:
    """Entries for money paid to a vendor.

    Dr Accounts Payable
        Cr Bank
    """
    entries: list[LedgerEntry] = []
    _entry(entries, accounts[Role.ACCOUNTS_PAYABLE], EntryDirection.DEBIT, fields.amount, "Payment to vendor")
    _entry(entries, fields.bank_account_id, EntryDirection.CREDIT, fields.amount, "Payment made to vendor")
    return entries


def generate_journal_entries(fields: JournalInput) -> list[LedgerEntry]:
    """Entries for a manual journal, one per non-zero side of each line."""
    entries: list[LedgerEntry] = []
    for line in fields.lines:
        _entry(entries, line.account_id, EntryDirection.DEBIT, line.debit, line.memo)
        _entry(entries, line.account_id, EntryDirection.CREDIT, line.credit, line.memo)
    return entries


def generate_reversing_entries(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    """Mirror image of an entry list: every debit becomes a credit and vice versa."""
    return [
        LedgerEntry(
            account_id=entry.account_id,
            direction=entry.direction.opposite(),
            amount=entry.amount,
            memo=f"{REVERSAL_PREFIX} {entry.memo or ''}".rstrip(),
        )
        for entry in entries
    ]


def generate_entries(
    transaction_type: TransactionType,
    fields: FinancialFields,
    accounts: SystemAccounts,
) -> list[LedgerEntry]:
    """Dispatch to the generator for a transaction type."""
    if transaction_type is TransactionType.CUSTOMER_INVOICE:
        return generate_invoice_entries(fields, accounts)
    if transaction_type is TransactionType.VENDOR_BILL:
        return generate_bill_entries(fields, accounts)
    if transaction_type is TransactionType.CUSTOMER_PAYMENT:
        return generate_customer_payment_entries(fields, accounts)
    if transaction_type is TransactionType.VENDOR_PAYMENT:
        return generate_vendor_payment_entries(fields, accounts)
    if transaction_type is TransactionType.JOURNAL_ENTRY:
        return generate_journal_entries(fields)
    raise ValueError(f"No entry generator for transaction type {transaction_type.value}")
