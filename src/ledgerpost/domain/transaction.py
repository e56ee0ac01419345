"""Transaction domain service: posting, editing and voiding documents."""

import logging
from dataclasses import replace
from typing import Any, Optional, Sequence
from datetime import date
from decimal import Decimal
from ledgerpost.database.base import Database
from ledgerpost.domain.balance import validate_entries
from ledgerpost.domain.entities import (
    BillInput,
    EntryDirection,
    InvoiceInput,
    JournalInput,
    JournalLine,
    LedgerEntry,
    PaymentInput,
    PaymentStatus,
    Transaction as TransactionEntity,
    TransactionChange,
    TransactionStatus,
    TransactionType,
    ZERO,
)
from ledgerpost.domain.errors import (
    ConflictError,
    DecodingError,
    MissingSystemAccountsError,
    NotFoundError,
    UnbalancedEntriesError,
    ValidationError,
    account_not_found,
    illegal_status,
    transaction_not_found,
)
from ledgerpost.domain.events import TransactionEvents
from ledgerpost.domain.ledger_entries import (
    FinancialFields,
    generate_entries,
    generate_reversing_entries,
)
from ledgerpost.domain.system_accounts import SystemAccountResolver

logger = logging.getLogger(__name__)

INPUT_TYPES = {
    TransactionType.CUSTOMER_INVOICE: InvoiceInput,
    TransactionType.VENDOR_BILL: BillInput,
    TransactionType.CUSTOMER_PAYMENT: PaymentInput,
    TransactionType.VENDOR_PAYMENT: PaymentInput,
    TransactionType.JOURNAL_ENTRY: JournalInput,
}

# payment type -> document type it settles
SETTLES = {
    TransactionType.CUSTOMER_PAYMENT: TransactionType.CUSTOMER_INVOICE,
    TransactionType.VENDOR_PAYMENT: TransactionType.VENDOR_BILL,
}

# document type -> input field naming its counterparty
COUNTERPARTY_FIELDS = {
    TransactionType.CUSTOMER_INVOICE: "customer",
    TransactionType.VENDOR_BILL: "vendor",
}

EDITABLE_STATUSES = (TransactionStatus.DRAFT, TransactionStatus.POSTED)


def _header(transaction_type: TransactionType, fields: FinancialFields) -> dict[str, Any]:
    """Header columns stored alongside the entries."""
    header: dict[str, Any] = {
        "date": fields.date,
        "description": fields.description,
        "reference": fields.reference,
        "counterparty": None,
        "related_transaction_id": None,
        "gst_type": None,
        "cgst_amount": ZERO,
        "sgst_amount": ZERO,
        "igst_amount": ZERO,
        "tds_section": None,
        "tds_amount": ZERO,
    }
    if isinstance(fields, (InvoiceInput, BillInput)):
        header.update(
            subtotal=fields.subtotal,
            tax_amount=fields.tax_amount,
            total_amount=fields.total_amount,
        )
        if fields.gst:
            header.update(
                gst_type=fields.gst.gst_type,
                cgst_amount=fields.gst.cgst_amount,
                sgst_amount=fields.gst.sgst_amount,
                igst_amount=fields.gst.igst_amount,
            )
        if isinstance(fields, InvoiceInput):
            header["counterparty"] = fields.customer
        else:
            header.update(
                counterparty=fields.vendor,
                tds_section=fields.tds.section if fields.tds else None,
                tds_amount=fields.tds_amount,
            )
    elif isinstance(fields, PaymentInput):
        header.update(
            subtotal=fields.amount,
            tax_amount=ZERO,
            total_amount=fields.amount,
            counterparty=fields.counterparty,
            allocations=fields.allocations,
        )
        if len(fields.allocations) == 1:
            header["related_transaction_id"] = fields.allocations[0].document_id
    else:
        total = sum((line.debit for line in fields.lines), ZERO)
        header.update(subtotal=total, tax_amount=ZERO, total_amount=total)
    return header


def fields_of(transaction: TransactionEntity) -> FinancialFields:
    """Rebuild the typed input a stored transaction was saved from.

    Raises:
        ValidationError: For reversals, which have no input of their own
        DecodingError: If a payment has no bank entry
    """
    common = dict(
        date=transaction.date,
        description=transaction.description,
        reference=transaction.reference,
    )
    transaction_type = transaction.transaction_type
    if transaction_type is TransactionType.CUSTOMER_INVOICE:
        return InvoiceInput(
            subtotal=transaction.subtotal,
            gst=transaction.gst,
            customer=transaction.counterparty,
            **common,
        )
    if transaction_type is TransactionType.VENDOR_BILL:
        return BillInput(
            subtotal=transaction.subtotal,
            gst=transaction.gst,
            tds=transaction.tds,
            vendor=transaction.counterparty,
            **common,
        )
    if transaction_type in SETTLES:
        # Money comes into the bank on a receipt and leaves it on a vendor payment
        bank_side = (
            EntryDirection.DEBIT
            if transaction_type is TransactionType.CUSTOMER_PAYMENT
            else EntryDirection.CREDIT
        )
        bank_account_id = next(
            (entry.account_id for entry in transaction.entries if entry.direction is bank_side),
            None,
        )
        if bank_account_id is None:
            raise DecodingError(f"Transaction {transaction.id}: payment has no bank entry")
        return PaymentInput(
            amount=transaction.total_amount,
            bank_account_id=bank_account_id,
            counterparty=transaction.counterparty,
            allocations=transaction.allocations,
            **common,
        )
    if transaction_type is TransactionType.JOURNAL_ENTRY:
        return JournalInput(
            lines=tuple(
                JournalLine(
                    account_id=entry.account_id,
                    debit=entry.debit,
                    credit=entry.credit,
                    memo=entry.memo,
                )
                for entry in transaction.entries
            ),
            **common,
        )
    raise ValidationError(
        f"Transaction {transaction.id} is a {transaction_type.value} and cannot be rebuilt"
    )


class TransactionService:
    """Service for posting transactions to the ledger.

    Every save runs the same pipeline: resolve system accounts, stop if any
    required role is missing, generate entries, validate them, persist the
    header and entries in one write, then publish the change. A failed step
    aborts the save with its specific error and nothing is written.
    """

    def __init__(
        self,
        db: Database,
        events: Optional[TransactionEvents] = None,
        resolver: Optional[SystemAccountResolver] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            events: Event dispatcher notified after each committed write
            resolver: System account resolver; defaults to one over db
        """
        self.db = db
        self.events = events if events is not None else TransactionEvents()
        self.resolver = resolver if resolver is not None else SystemAccountResolver(db)

    # Posting
    def post_invoice(
        self, fields: InvoiceInput, status: TransactionStatus = TransactionStatus.POSTED
    ) -> int:
        """Record a customer invoice. Returns transaction ID."""
        return self._create(TransactionType.CUSTOMER_INVOICE, fields, status)

    def post_bill(
        self, fields: BillInput, status: TransactionStatus = TransactionStatus.POSTED
    ) -> int:
        """Record a vendor bill. Returns transaction ID."""
        return self._create(TransactionType.VENDOR_BILL, fields, status)

    def post_customer_payment(
        self, fields: PaymentInput, status: TransactionStatus = TransactionStatus.POSTED
    ) -> int:
        """Record money received from a customer. Returns transaction ID."""
        return self._create(TransactionType.CUSTOMER_PAYMENT, fields, status)

    def post_vendor_payment(
        self, fields: PaymentInput, status: TransactionStatus = TransactionStatus.POSTED
    ) -> int:
        """Record money paid to a vendor. Returns transaction ID."""
        return self._create(TransactionType.VENDOR_PAYMENT, fields, status)

    def post_journal_entry(
        self, fields: JournalInput, status: TransactionStatus = TransactionStatus.POSTED
    ) -> int:
        """Record a manual journal entry. Returns transaction ID."""
        return self._create(TransactionType.JOURNAL_ENTRY, fields, status)

    def _create(
        self,
        transaction_type: TransactionType,
        fields: FinancialFields,
        status: TransactionStatus,
    ) -> int:
        if status not in EDITABLE_STATUSES:
            raise ValidationError(f"New transactions must be DRAFT or POSTED, not {status.value}")
        entries = self._build_entries(transaction_type, fields)
        header = _header(transaction_type, fields)
        transaction_id = self.db.create_transaction(
            transaction_type=transaction_type,
            status=status,
            entries=entries,
            **header,
        )
        logger.info(
            "Saved %s %s as %s with %d entries",
            transaction_type.value,
            transaction_id,
            status.value,
            len(entries),
        )
        self.events.publish(TransactionChange(old=None, new=self.require_transaction(transaction_id)))
        return transaction_id

    def _build_entries(
        self,
        transaction_type: TransactionType,
        fields: FinancialFields,
        transaction_id: Optional[int] = None,
    ) -> list[LedgerEntry]:
        """Resolve, generate and validate the entries for a document."""
        expected_input = INPUT_TYPES[transaction_type]
        if not isinstance(fields, expected_input):
            raise ValidationError(
                f"{transaction_type.value} needs {expected_input.__name__}, got {type(fields).__name__}"
            )

        resolution = self.resolver.resolve_for(
            transaction_type,
            gst=getattr(fields, "gst", None),
            tds=getattr(fields, "tds", None),
        )
        if not resolution.is_complete:
            error = MissingSystemAccountsError(resolution.missing_roles)
            logger.warning("Blocked %s: %s", transaction_type.value, error)
            raise error

        if isinstance(fields, PaymentInput):
            self._check_posting_account(fields.bank_account_id)
            self._check_allocation(transaction_type, fields, transaction_id)
        elif isinstance(fields, JournalInput):
            for line in fields.lines:
                if line.debit and line.credit:
                    raise ValidationError(
                        f"Journal line for account {line.account_id} has both a debit and a credit"
                    )
                self._check_posting_account(line.account_id)

        entries = generate_entries(transaction_type, fields, resolution.accounts)
        validation = validate_entries(entries)
        if not validation.is_valid:
            error = UnbalancedEntriesError(validation)
            logger.warning("Blocked %s: %s", transaction_type.value, error)
            raise error
        for warning in validation.warnings:
            logger.info("%s: %s", transaction_type.value, warning)
        return entries

    def _check_posting_account(self, account_id: int) -> None:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if not account.is_active:
            raise ValidationError(f"Account {account_id} ({account.name}) is inactive")

    def _check_allocation(
        self,
        transaction_type: TransactionType,
        fields: PaymentInput,
        transaction_id: Optional[int] = None,
    ) -> None:
        """Each allocation must settle a posted document of the matching kind."""
        expected = SETTLES[transaction_type]
        for allocation in fields.allocations:
            if allocation.document_id == transaction_id:
                raise ValidationError("A payment cannot settle itself")
            target = self.require_transaction(allocation.document_id)
            if target.transaction_type is not expected:
                raise ValidationError(
                    f"Transaction {target.id} is a {target.transaction_type.value}, "
                    f"a {transaction_type.value} can only settle a {expected.value}"
                )
            if target.status is not TransactionStatus.POSTED:
                raise ConflictError(illegal_status(target.id, target.status, "pay"))
            outstanding = self._outstanding(target, exclude_id=transaction_id)
            if allocation.amount > outstanding:
                raise ValidationError(
                    f"Payment amount {allocation.amount:,.2f} exceeds outstanding amount "
                    f"{outstanding:,.2f} on transaction {target.id}"
                )

    # Lifecycle
    def update_transaction(self, transaction_id: int, fields: FinancialFields) -> None:
        """Replace a transaction's financial fields and regenerate all its entries.

        Raises:
            NotFoundError: If transaction not found
            ConflictError: If the transaction is void or a reversal
            ValidationError: If an invoice or bill would fall below what
                posted payments have already settled
        """
        old = self.require_transaction(transaction_id)
        if old.status not in EDITABLE_STATUSES or old.transaction_type is TransactionType.REVERSAL:
            raise ConflictError(illegal_status(transaction_id, old.status, "edit"))

        entries = self._build_entries(old.transaction_type, fields, transaction_id)
        if isinstance(fields, (InvoiceInput, BillInput)):
            owed = fields.total_amount - getattr(fields, "tds_amount", ZERO)
            paid = self._paid(old)
            if owed < paid:
                raise ValidationError(
                    f"Amount due {owed:,.2f} is less than the {paid:,.2f} already paid "
                    f"on transaction {transaction_id}"
                )

        self.db.update_transaction(
            transaction_id, entries, _header(old.transaction_type, fields)
        )
        logger.info("Updated transaction %s", transaction_id)
        self.events.publish(TransactionChange(old=old, new=self.require_transaction(transaction_id)))

    def post_draft(self, transaction_id: int) -> None:
        """Move a draft to POSTED so its entries start counting.

        The draft goes through the full save pipeline again, so accounts
        deactivated and documents settled since it was saved are checked
        against the ledger as it is now.
        """
        old = self.require_transaction(transaction_id)
        if old.status is not TransactionStatus.DRAFT:
            raise ConflictError(illegal_status(transaction_id, old.status, "post"))

        fields = fields_of(old)
        entries = self._build_entries(old.transaction_type, fields, transaction_id)
        self.db.update_transaction(
            transaction_id,
            entries,
            _header(old.transaction_type, fields),
            status=TransactionStatus.POSTED,
        )
        logger.info("Posted draft transaction %s", transaction_id)
        self.events.publish(TransactionChange(old=old, new=self.require_transaction(transaction_id)))

    def _require_voidable(self, transaction_id: int, reason: str) -> TransactionEntity:
        if not reason:
            raise ValidationError("A reason is required to void a transaction")
        original = self.require_transaction(transaction_id)
        if original.status is not TransactionStatus.POSTED:
            raise ConflictError(illegal_status(transaction_id, original.status, "void"))
        if original.transaction_type is TransactionType.REVERSAL:
            raise ConflictError(f"Cannot void transaction {transaction_id}: it is a reversal")
        payments = self._posted_payments(original)
        if payments:
            ids = ", ".join(str(payment.id) for payment in payments)
            raise ConflictError(
                f"Cannot void transaction {transaction_id}: posted payments {ids} "
                "are allocated to it. Void the payments first."
            )
        return original

    def _reversal_of(
        self, original: TransactionEntity, reason: str, void_date: Optional[date]
    ) -> dict[str, Any]:
        return dict(
            transaction_type=TransactionType.REVERSAL,
            date=void_date or original.date,
            status=TransactionStatus.POSTED,
            entries=generate_reversing_entries(original.entries),
            subtotal=original.subtotal,
            tax_amount=original.tax_amount,
            total_amount=original.total_amount,
            description=f"Reversal of transaction {original.id}: {reason}",
            reference=original.reference,
            counterparty=original.counterparty,
            related_transaction_id=original.id,
            gst_type=original.gst_type,
            cgst_amount=original.cgst_amount,
            sgst_amount=original.sgst_amount,
            igst_amount=original.igst_amount,
            tds_section=original.tds_section,
            tds_amount=original.tds_amount,
        )

    def void_transaction(
        self, transaction_id: int, reason: str, void_date: Optional[date] = None
    ) -> int:
        """Cancel a posted transaction by posting its mirror image.

        The original keeps its entries and is marked VOID; a REVERSAL
        transaction linked to it cancels its effect on every balance.
        Both changes are written in one commit.

        Args:
            transaction_id: Transaction to void
            reason: Why it is being voided
            void_date: Date of the reversal; defaults to the original's date

        Returns:
            ID of the reversal transaction

        Raises:
            ConflictError: If the transaction is not POSTED, is itself a
                reversal, or is a document with posted payments against it
        """
        reason = (reason or "").strip()
        original = self._require_voidable(transaction_id, reason)

        reversal_id, _ = self.db.void_transaction(
            transaction_id, reason, self._reversal_of(original, reason, void_date)
        )
        self.events.publish(TransactionChange(old=None, new=self.require_transaction(reversal_id)))
        self.events.publish(
            TransactionChange(old=original, new=self.require_transaction(transaction_id))
        )
        logger.info("Voided transaction %s with reversal %s: %s", transaction_id, reversal_id, reason)
        return reversal_id

    def void_and_recreate(
        self,
        transaction_id: int,
        reason: str,
        counterparty: str,
        void_date: Optional[date] = None,
    ) -> tuple[int, int]:
        """Void an invoice or bill and post a copy for another customer or vendor.

        The copy keeps every amount and is linked to the voided original.
        The void, its reversal and the copy are written in one commit.

        Returns:
            (reversal ID, new transaction ID)
        """
        reason = (reason or "").strip()
        counterparty = (counterparty or "").strip()
        original = self._require_voidable(transaction_id, reason)
        field_name = COUNTERPARTY_FIELDS.get(original.transaction_type)
        if field_name is None:
            raise ValidationError(
                f"Transaction {transaction_id} is a {original.transaction_type.value}, "
                "only invoices and bills can be recreated for another party"
            )
        if not counterparty:
            raise ValidationError("A new customer or vendor is required")

        fields = replace(fields_of(original), **{field_name: counterparty})
        entries = self._build_entries(original.transaction_type, fields, transaction_id)
        replacement = dict(
            transaction_type=original.transaction_type,
            status=TransactionStatus.POSTED,
            entries=entries,
            **_header(original.transaction_type, fields),
        )
        replacement["related_transaction_id"] = transaction_id

        reversal_id, new_id = self.db.void_transaction(
            transaction_id,
            reason,
            self._reversal_of(original, reason, void_date),
            replacement=replacement,
        )
        self.events.publish(TransactionChange(old=None, new=self.require_transaction(reversal_id)))
        self.events.publish(
            TransactionChange(old=original, new=self.require_transaction(transaction_id))
        )
        self.events.publish(TransactionChange(old=None, new=self.require_transaction(new_id)))
        logger.info(
            "Voided transaction %s and recreated it as %s for %s", transaction_id, new_id, counterparty
        )
        return reversal_id, new_id

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a draft. Posted transactions must be voided instead."""
        old = self.require_transaction(transaction_id)
        if old.status is not TransactionStatus.DRAFT:
            raise ConflictError(
                illegal_status(transaction_id, old.status, "delete") + ". Void it instead."
            )
        self.db.delete_transaction(transaction_id)
        logger.info("Deleted draft transaction %s", transaction_id)
        self.events.publish(TransactionChange(old=old, new=None))

    # Queries
    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID, or None if not found."""
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> TransactionEntity:
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        account_id: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List transactions in ledger order with optional filters."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError("Start date must be on or before end date")
        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
            statuses=[status] if status is not None else None,
            account_id=account_id,
        )

    def _posted_payments(self, document: TransactionEntity) -> Sequence[TransactionEntity]:
        if document.transaction_type not in SETTLES.values():
            return []
        return [
            txn
            for txn in self.db.list_payments_for(document.id, statuses=[TransactionStatus.POSTED])
            if txn.transaction_type in SETTLES
        ]

    def _require_document(self, transaction_id: int) -> TransactionEntity:
        document = self.require_transaction(transaction_id)
        if document.transaction_type not in SETTLES.values():
            raise ValidationError(
                f"Transaction {transaction_id} is a {document.transaction_type.value}, "
                "only invoices and bills have an outstanding amount"
            )
        return document

    def outstanding_amount(self, transaction_id: int) -> Decimal:
        """Amount of an invoice or bill not yet settled by posted payments.

        For bills this is the amount owed to the vendor after TDS.
        """
        return self._outstanding(self._require_document(transaction_id))

    def payment_status(self, transaction_id: int) -> PaymentStatus:
        """UNPAID, PARTIALLY_PAID or PAID from the posted payments of a document."""
        document = self._require_document(transaction_id)
        paid = self._paid(document)
        if paid >= document.total_amount - document.tds_amount:
            return PaymentStatus.PAID
        if paid > 0:
            return PaymentStatus.PARTIALLY_PAID
        return PaymentStatus.UNPAID

    def _paid(self, document: TransactionEntity, exclude_id: Optional[int] = None) -> Decimal:
        """Sum of posted allocations to a document."""
        return sum(
            (
                allocation.amount
                for payment in self._posted_payments(document)
                if payment.id != exclude_id
                for allocation in payment.allocations
                if allocation.document_id == document.id
            ),
            ZERO,
        )

    def _outstanding(
        self, document: TransactionEntity, exclude_id: Optional[int] = None
    ) -> Decimal:
        return document.total_amount - document.tds_amount - self._paid(document, exclude_id)
