"""Tests for the transaction posting service."""

import pytest
from sqlalchemy.exc import SQLAlchemyError
from datetime import date
from decimal import Decimal

from ledgerpost.domain.entities import (
    AccountType,
    BillInput,
    GSTDetails,
    GSTType,
    InvoiceInput,
    JournalInput,
    JournalLine,
    PaymentAllocation,
    PaymentInput,
    PaymentStatus,
    SystemAccountRole as Role,
    TDSDetails,
    TransactionChange,
    TransactionStatus,
    TransactionType,
)
from ledgerpost.domain.errors import (
    ConflictError,
    MissingSystemAccountsError,
    NotFoundError,
    PersistenceError,
    UnbalancedEntriesError,
    ValidationError,
)
from ledgerpost.domain.ledger_entries import REVERSAL_PREFIX
from ledgerpost.domain.transaction import TransactionService

DAY = date(2024, 4, 15)
INTRA_18 = GSTDetails(GSTType.INTRA_STATE, cgst_amount=Decimal("900"), sgst_amount=Decimal("900"))


def _invoice(subtotal="10000", gst=INTRA_18, **kwargs):
    return InvoiceInput(date=DAY, subtotal=Decimal(subtotal), gst=gst, **kwargs)


class TestPosting:
    def test_post_invoice_persists_entries_and_header(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(
            _invoice(customer="Aqua Pure Ltd", reference="INV-001", description="RO plant")
        )
        txn = transaction_service.get_transaction(txn_id)

        assert txn.transaction_type is TransactionType.CUSTOMER_INVOICE
        assert txn.status is TransactionStatus.POSTED
        assert txn.subtotal == Decimal("10000.00")
        assert txn.tax_amount == Decimal("1800.00")
        assert txn.total_amount == Decimal("11800.00")
        assert txn.gst_type is GSTType.INTRA_STATE
        assert txn.counterparty == "Aqua Pure Ltd"
        assert txn.reference == "INV-001"
        assert [(e.account_id, e.debit, e.credit) for e in txn.entries] == [
            (chart["Accounts Receivable"], Decimal("11800.00"), Decimal("0")),
            (chart["Sales Revenue"], Decimal("0"), Decimal("10000.00")),
            (chart["CGST Payable"], Decimal("0"), Decimal("900.00")),
            (chart["SGST Payable"], Decimal("0"), Decimal("900.00")),
        ]

    def test_post_invoice_updates_balances(self, transaction_service, chart, balance_of):
        transaction_service.post_invoice(_invoice())

        assert balance_of(chart["Accounts Receivable"]) == Decimal("11800.00")
        assert balance_of(chart["Sales Revenue"]) == Decimal("-10000.00")
        assert balance_of(chart["CGST Payable"]) == Decimal("-900.00")
        assert balance_of(chart["SGST Payable"]) == Decimal("-900.00")

    def test_post_bill_with_tds(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_bill(
            BillInput(
                date=DAY,
                subtotal=Decimal("10000"),
                gst=INTRA_18,
                tds=TDSDetails("194C", Decimal("1000")),
                vendor="Membrane Supplies",
            )
        )
        txn = transaction_service.get_transaction(txn_id)

        assert txn.tds_section == "194C"
        assert txn.tds_amount == Decimal("1000.00")
        assert balance_of(chart["Accounts Payable"]) == Decimal("-10800.00")
        assert balance_of(chart["TDS Payable"]) == Decimal("-1000.00")
        assert balance_of(chart["Cost of Goods Sold"]) == Decimal("10000.00")
        assert balance_of(chart["CGST Input"]) == Decimal("900.00")

    def test_post_journal_entry(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_journal_entry(
            JournalInput(
                date=DAY,
                lines=(
                    JournalLine(account_id=chart["Rent Expense"], debit=Decimal("25000")),
                    JournalLine(account_id=chart["Bank Account"], credit=Decimal("25000")),
                ),
                description="April rent",
            )
        )

        assert transaction_service.get_transaction(txn_id).total_amount == Decimal("25000.00")
        assert balance_of(chart["Rent Expense"]) == Decimal("25000.00")
        assert balance_of(chart["Bank Account"]) == Decimal("-25000.00")

    def test_publishes_create_event(self, temp_db, events, chart):
        received = []
        events.subscribe(received.append)
        service = TransactionService(temp_db, events)

        txn_id = service.post_invoice(_invoice())

        assert len(received) == 1
        assert received[0].old is None
        assert received[0].new.id == txn_id


class TestSaveGates:
    def test_missing_receivable_blocks_invoice(self, transaction_service, account_service, temp_db, events):
        account_service.create_account("4100", "Sales Revenue", AccountType.REVENUE)
        received = []
        events.subscribe(received.append)

        with pytest.raises(MissingSystemAccountsError) as exc_info:
            transaction_service.post_invoice(_invoice(gst=None))

        assert exc_info.value.missing_roles == (Role.ACCOUNTS_RECEIVABLE,)
        assert "Accounts Receivable" in str(exc_info.value)
        assert temp_db.list_transactions() == []
        assert received == []

    def test_missing_accounts_stop_before_generation(self, temp_db, monkeypatch):
        import ledgerpost.domain.transaction as transaction_module

        def fail(*args, **kwargs):
            raise AssertionError("entries generated without accounts")

        monkeypatch.setattr(transaction_module, "generate_entries", fail)
        service = TransactionService(temp_db)

        with pytest.raises(MissingSystemAccountsError):
            service.post_invoice(_invoice())

    def test_missing_gst_account_named(self, transaction_service, account_service, chart):
        account_service.deactivate_account(chart["IGST Payable"])
        gst = GSTDetails(GSTType.INTER_STATE, igst_amount=Decimal("1800"))

        with pytest.raises(MissingSystemAccountsError, match="IGST Payable"):
            transaction_service.post_invoice(_invoice(gst=gst))

    def test_negative_amount_blocked_with_totals(self, transaction_service, chart, temp_db):
        with pytest.raises(UnbalancedEntriesError) as exc_info:
            transaction_service.post_invoice(_invoice(subtotal="-100", gst=None))

        assert "Amount cannot be negative" in str(exc_info.value)
        assert temp_db.list_transactions() == []

    def test_unbalanced_journal_blocked(self, transaction_service, chart, temp_db):
        fields = JournalInput(
            date=DAY,
            lines=(
                JournalLine(account_id=chart["Rent Expense"], debit=Decimal("1200")),
                JournalLine(account_id=chart["Bank Account"], credit=Decimal("1000")),
            ),
        )
        with pytest.raises(UnbalancedEntriesError) as exc_info:
            transaction_service.post_journal_entry(fields)

        assert exc_info.value.total_debit == Decimal("1200.00")
        assert exc_info.value.total_credit == Decimal("1000.00")
        assert "difference 200.00" in str(exc_info.value)
        assert temp_db.list_transactions() == []

    def test_journal_line_with_both_sides_rejected(self, transaction_service, chart):
        fields = JournalInput(
            date=DAY,
            lines=(
                JournalLine(account_id=chart["Rent Expense"], debit=Decimal("1"), credit=Decimal("1")),
                JournalLine(account_id=chart["Bank Account"], credit=Decimal("1")),
            ),
        )
        with pytest.raises(ValidationError, match="both a debit and a credit"):
            transaction_service.post_journal_entry(fields)

    def test_journal_to_unknown_account(self, transaction_service, chart):
        fields = JournalInput(
            date=DAY,
            lines=(
                JournalLine(account_id=9999, debit=Decimal("1")),
                JournalLine(account_id=chart["Bank Account"], credit=Decimal("1")),
            ),
        )
        with pytest.raises(NotFoundError, match="Account 9999 not found"):
            transaction_service.post_journal_entry(fields)

    def test_payment_to_inactive_bank_rejected(self, transaction_service, account_service, chart):
        account_service.deactivate_account(chart["Bank Account"])
        fields = PaymentInput(date=DAY, amount=Decimal("100"), bank_account_id=chart["Bank Account"])

        with pytest.raises(ValidationError, match="inactive"):
            transaction_service.post_customer_payment(fields)

    def test_wrong_input_type_rejected(self, transaction_service, chart):
        with pytest.raises(ValidationError, match="needs BillInput"):
            transaction_service.post_bill(_invoice())

    def test_new_transaction_cannot_be_void(self, transaction_service, chart):
        with pytest.raises(ValidationError):
            transaction_service.post_invoice(_invoice(), status=TransactionStatus.VOID)


class TestPayments:
    def test_payment_settles_invoice(self, transaction_service, chart, balance_of):
        invoice_id = transaction_service.post_invoice(_invoice())
        transaction_service.post_customer_payment(
            PaymentInput(
                date=DAY,
                amount=Decimal("5000"),
                bank_account_id=chart["Bank Account"],
                allocated_to_id=invoice_id,
            )
        )

        assert transaction_service.outstanding_amount(invoice_id) == Decimal("6800.00")
        assert balance_of(chart["Accounts Receivable"]) == Decimal("6800.00")
        assert balance_of(chart["Bank Account"]) == Decimal("5000.00")

    def test_bill_outstanding_excludes_tds(self, transaction_service, chart):
        bill_id = transaction_service.post_bill(
            BillInput(date=DAY, subtotal=Decimal("10000"), tds=TDSDetails("194J", Decimal("1000")))
        )
        assert transaction_service.outstanding_amount(bill_id) == Decimal("9000.00")

    def test_overpayment_rejected(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        fields = PaymentInput(
            date=DAY,
            amount=Decimal("20000"),
            bank_account_id=chart["Bank Account"],
            allocated_to_id=invoice_id,
        )
        with pytest.raises(ValidationError, match="exceeds outstanding amount 11,800.00"):
            transaction_service.post_customer_payment(fields)

    def test_vendor_payment_cannot_settle_invoice(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        fields = PaymentInput(
            date=DAY,
            amount=Decimal("100"),
            bank_account_id=chart["Bank Account"],
            allocated_to_id=invoice_id,
        )
        with pytest.raises(ValidationError, match="can only settle a VENDOR_BILL"):
            transaction_service.post_vendor_payment(fields)

    def test_editing_payment_keeps_its_own_allocation(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        fields = PaymentInput(
            date=DAY,
            amount=Decimal("11800"),
            bank_account_id=chart["Bank Account"],
            allocated_to_id=invoice_id,
        )
        payment_id = transaction_service.post_customer_payment(fields)

        transaction_service.update_transaction(payment_id, fields)

        assert transaction_service.outstanding_amount(invoice_id) == Decimal("0.00")


class TestLifecycle:
    def test_draft_does_not_affect_balances(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_invoice(_invoice(), status=TransactionStatus.DRAFT)

        assert transaction_service.get_transaction(txn_id).status is TransactionStatus.DRAFT
        assert len(transaction_service.get_transaction(txn_id).entries) == 4
        assert balance_of(chart["Accounts Receivable"]) == Decimal("0")

    def test_post_draft(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_invoice(_invoice(), status=TransactionStatus.DRAFT)

        transaction_service.post_draft(txn_id)

        assert transaction_service.get_transaction(txn_id).status is TransactionStatus.POSTED
        assert balance_of(chart["Accounts Receivable"]) == Decimal("11800.00")

    def test_post_draft_twice_rejected(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        with pytest.raises(ConflictError, match="Cannot post transaction .*: status is POSTED"):
            transaction_service.post_draft(txn_id)

    def test_update_regenerates_entries(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_invoice(_invoice())

        transaction_service.update_transaction(
            txn_id, _invoice(subtotal="20000", gst=GSTDetails(GSTType.INTER_STATE, igst_amount=Decimal("3600")))
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.total_amount == Decimal("23600.00")
        assert txn.gst_type is GSTType.INTER_STATE
        assert len(txn.entries) == 3
        assert balance_of(chart["Accounts Receivable"]) == Decimal("23600.00")
        assert balance_of(chart["CGST Payable"]) == Decimal("0.00")
        assert balance_of(chart["IGST Payable"]) == Decimal("-3600.00")

    def test_void_posts_linked_reversal(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_invoice(_invoice())

        reversal_id = transaction_service.void_transaction(txn_id, "Raised twice")

        original = transaction_service.get_transaction(txn_id)
        reversal = transaction_service.get_transaction(reversal_id)
        assert original.status is TransactionStatus.VOID
        assert original.void_reason == "Raised twice"
        assert len(original.entries) == 4
        assert reversal.transaction_type is TransactionType.REVERSAL
        assert reversal.related_transaction_id == txn_id
        assert reversal.date == original.date
        assert all(entry.memo.startswith(REVERSAL_PREFIX) for entry in reversal.entries)
        for name in ("Accounts Receivable", "Sales Revenue", "CGST Payable", "SGST Payable"):
            assert balance_of(chart[name]) == Decimal("0.00")

    def test_void_uses_given_date(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        reversal_id = transaction_service.void_transaction(txn_id, "Cancelled", void_date=date(2024, 5, 1))
        assert transaction_service.get_transaction(reversal_id).date == date(2024, 5, 1)

    def test_void_requires_reason(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        with pytest.raises(ValidationError, match="reason is required"):
            transaction_service.void_transaction(txn_id, "  ")

    def test_void_twice_rejected(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        transaction_service.void_transaction(txn_id, "Duplicate")
        with pytest.raises(ConflictError, match="status is VOID"):
            transaction_service.void_transaction(txn_id, "Again")

    def test_reversal_cannot_be_voided(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        reversal_id = transaction_service.void_transaction(txn_id, "Duplicate")
        with pytest.raises(ConflictError, match="it is a reversal"):
            transaction_service.void_transaction(reversal_id, "Undo")

    def test_void_blocked_by_posted_payment(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        payment_id = transaction_service.post_customer_payment(
            PaymentInput(
                date=DAY,
                amount=Decimal("100"),
                bank_account_id=chart["Bank Account"],
                allocated_to_id=invoice_id,
            )
        )

        with pytest.raises(ConflictError, match=f"posted payments {payment_id}"):
            transaction_service.void_transaction(invoice_id, "Wrong customer")

        transaction_service.void_transaction(payment_id, "Bounced cheque")
        transaction_service.void_transaction(invoice_id, "Wrong customer")

    def test_void_cannot_edit(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        transaction_service.void_transaction(txn_id, "Duplicate")
        with pytest.raises(ConflictError, match="Cannot edit"):
            transaction_service.update_transaction(txn_id, _invoice())

    def test_delete_draft(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice(), status=TransactionStatus.DRAFT)
        transaction_service.delete_transaction(txn_id)
        assert transaction_service.get_transaction(txn_id) is None

    def test_delete_posted_rejected(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        with pytest.raises(ConflictError, match="Void it instead"):
            transaction_service.delete_transaction(txn_id)

    def test_require_missing_transaction(self, transaction_service):
        with pytest.raises(NotFoundError, match="Transaction 42 not found"):
            transaction_service.require_transaction(42)


class TestQueries:
    def test_list_filters(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        bill_id = transaction_service.post_bill(
            BillInput(date=date(2024, 5, 2), subtotal=Decimal("500")), status=TransactionStatus.DRAFT
        )

        assert [t.id for t in transaction_service.list_transactions()] == [invoice_id, bill_id]
        assert [t.id for t in transaction_service.list_transactions(start_date=date(2024, 5, 1))] == [bill_id]
        assert [
            t.id for t in transaction_service.list_transactions(status=TransactionStatus.DRAFT)
        ] == [bill_id]
        assert [
            t.id
            for t in transaction_service.list_transactions(
                transaction_type=TransactionType.CUSTOMER_INVOICE
            )
        ] == [invoice_id]
        assert [
            t.id for t in transaction_service.list_transactions(account_id=chart["Accounts Payable"])
        ] == [bill_id]

    def test_list_rejects_inverted_range(self, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(start_date=date(2024, 5, 1), end_date=date(2024, 4, 1))

    def test_outstanding_only_for_documents(self, transaction_service, chart):
        payment_id = transaction_service.post_customer_payment(
            PaymentInput(date=DAY, amount=Decimal("100"), bank_account_id=chart["Bank Account"])
        )
        with pytest.raises(ValidationError, match="only invoices and bills"):
            transaction_service.outstanding_amount(payment_id)


def test_handler_failure_does_not_undo_write(temp_db, events, chart):
    def broken(change: TransactionChange):
        raise RuntimeError("subscriber down")

    events.subscribe(broken)
    service = TransactionService(temp_db, events)

    txn_id = service.post_invoice(_invoice())

    assert service.get_transaction(txn_id) is not None
    assert [change.transaction_id for change in events.failed_changes] == [txn_id]


def _payment(chart, amount, **kwargs):
    return PaymentInput(
        date=DAY, amount=Decimal(amount), bank_account_id=chart["Bank Account"], **kwargs
    )


class TestPaisaPrecision:
    def test_sub_paisa_subtotal_rejected(self, transaction_service, chart, temp_db):
        with pytest.raises(ValidationError, match="Subtotal 1.005 has more than 2 decimal places"):
            transaction_service.post_invoice(_invoice(subtotal="1.005", gst=None))
        assert temp_db.list_transactions() == []

    def test_sub_paisa_gst_rejected(self):
        with pytest.raises(ValidationError, match="GST CGST amount"):
            GSTDetails(GSTType.INTRA_STATE, cgst_amount=Decimal("0.0905"), sgst_amount=Decimal("0.09"))

    def test_sub_paisa_payment_and_journal_rejected(self, chart):
        with pytest.raises(ValidationError, match="Payment amount"):
            _payment(chart, "100.001")
        with pytest.raises(ValidationError, match="Debit on account"):
            JournalLine(account_id=chart["Bank Account"], debit=Decimal("0.001"))
        with pytest.raises(ValidationError, match="TDS amount"):
            TDSDetails("194C", Decimal("10.005"))

    def test_trailing_zeros_accepted(self, transaction_service, chart, balance_of):
        transaction_service.post_invoice(_invoice(subtotal="100.500", gst=None))
        assert balance_of(chart["Accounts Receivable"]) == Decimal("100.50")


class TestAllocations:
    def test_one_payment_settles_two_invoices(self, transaction_service, chart, balance_of):
        first = transaction_service.post_invoice(_invoice())
        second = transaction_service.post_invoice(_invoice(subtotal="5000", gst=None))
        untouched = transaction_service.post_invoice(_invoice(subtotal="700", gst=None))

        payment_id = transaction_service.post_customer_payment(
            _payment(
                chart,
                "15000",
                allocations=(
                    PaymentAllocation(first, Decimal("11800")),
                    PaymentAllocation(second, Decimal("3200")),
                ),
            )
        )

        payment = transaction_service.get_transaction(payment_id)
        assert payment.allocations == (
            PaymentAllocation(first, Decimal("11800.00")),
            PaymentAllocation(second, Decimal("3200.00")),
        )
        assert payment.related_transaction_id is None
        assert transaction_service.outstanding_amount(first) == Decimal("0.00")
        assert transaction_service.outstanding_amount(second) == Decimal("1800.00")
        assert transaction_service.payment_status(first) is PaymentStatus.PAID
        assert transaction_service.payment_status(second) is PaymentStatus.PARTIALLY_PAID
        assert transaction_service.payment_status(untouched) is PaymentStatus.UNPAID
        assert balance_of(chart["Accounts Receivable"]) == Decimal("2500.00")

    def test_allocation_above_document_outstanding_rejected(self, transaction_service, chart, temp_db):
        first = transaction_service.post_invoice(_invoice())
        second = transaction_service.post_invoice(_invoice(subtotal="1000", gst=None))
        fields = _payment(
            chart,
            "13000",
            allocations=(
                PaymentAllocation(first, Decimal("11800")),
                PaymentAllocation(second, Decimal("1200")),
            ),
        )

        with pytest.raises(ValidationError, match=f"exceeds outstanding amount 1,000.00 on transaction {second}"):
            transaction_service.post_customer_payment(fields)
        assert temp_db.list_transactions(transaction_type=TransactionType.CUSTOMER_PAYMENT) == []

    def test_allocations_cannot_exceed_payment(self, chart):
        with pytest.raises(ValidationError, match="Allocations total 150.00 exceeds payment amount 100.00"):
            _payment(
                chart,
                "100",
                allocations=(
                    PaymentAllocation(1, Decimal("100")),
                    PaymentAllocation(2, Decimal("50")),
                ),
            )

    def test_zero_allocations_dropped_and_duplicates_rejected(self, chart):
        fields = _payment(
            chart,
            "100",
            allocations=(PaymentAllocation(1, Decimal("100")), PaymentAllocation(2, Decimal("0"))),
        )
        assert fields.allocations == (PaymentAllocation(1, Decimal("100")),)

        with pytest.raises(ValidationError, match="allocated more than once"):
            _payment(
                chart,
                "100",
                allocations=(PaymentAllocation(1, Decimal("50")), PaymentAllocation(1, Decimal("50"))),
            )
        with pytest.raises(ValidationError, match="cannot be negative"):
            PaymentAllocation(1, Decimal("-5"))

    def test_voiding_split_payment_reopens_every_invoice(self, transaction_service, chart):
        first = transaction_service.post_invoice(_invoice())
        second = transaction_service.post_invoice(_invoice(subtotal="5000", gst=None))
        payment_id = transaction_service.post_customer_payment(
            _payment(
                chart,
                "6000",
                allocations=(
                    PaymentAllocation(first, Decimal("1000")),
                    PaymentAllocation(second, Decimal("5000")),
                ),
            )
        )

        transaction_service.void_transaction(payment_id, "Bounced cheque")

        assert transaction_service.outstanding_amount(first) == Decimal("11800.00")
        assert transaction_service.payment_status(second) is PaymentStatus.UNPAID

    def test_fully_withheld_bill_is_paid(self, transaction_service, chart):
        bill_id = transaction_service.post_bill(
            BillInput(date=DAY, subtotal=Decimal("100"), tds=TDSDetails("194J", Decimal("100")))
        )
        assert transaction_service.payment_status(bill_id) is PaymentStatus.PAID


class TestDraftPosting:
    def test_second_draft_payment_cannot_overpay(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        drafts = [
            transaction_service.post_customer_payment(
                _payment(chart, "11800", allocated_to_id=invoice_id), status=TransactionStatus.DRAFT
            )
            for _ in range(2)
        ]

        transaction_service.post_draft(drafts[0])
        with pytest.raises(ValidationError, match="exceeds outstanding amount 0.00"):
            transaction_service.post_draft(drafts[1])

        assert transaction_service.get_transaction(drafts[1]).status is TransactionStatus.DRAFT
        assert transaction_service.outstanding_amount(invoice_id) == Decimal("0.00")

    def test_draft_to_deactivated_bank_cannot_be_posted(self, transaction_service, account_service, chart):
        payment_id = transaction_service.post_customer_payment(
            _payment(chart, "500"), status=TransactionStatus.DRAFT
        )
        account_service.deactivate_account(chart["Bank Account"])

        with pytest.raises(ValidationError, match="inactive"):
            transaction_service.post_draft(payment_id)

    def test_draft_bill_keeps_tax_breakdown(self, transaction_service, chart, balance_of):
        bill_id = transaction_service.post_bill(
            BillInput(date=DAY, subtotal=Decimal("10000"), gst=INTRA_18, tds=TDSDetails("194C", Decimal("100"))),
            status=TransactionStatus.DRAFT,
        )

        transaction_service.post_draft(bill_id)

        bill = transaction_service.get_transaction(bill_id)
        assert bill.gst == INTRA_18
        assert bill.tds == TDSDetails("194C", Decimal("100.00"))
        assert balance_of(chart["CGST Input"]) == Decimal("900.00")
        assert balance_of(chart["Accounts Payable"]) == Decimal("-11700.00")

    def test_draft_journal_posts_same_lines(self, transaction_service, chart, balance_of):
        journal_id = transaction_service.post_journal_entry(
            JournalInput(
                date=DAY,
                lines=(
                    JournalLine(account_id=chart["Rent Expense"], debit=Decimal("2500"), memo="April rent"),
                    JournalLine(account_id=chart["Bank Account"], credit=Decimal("2500")),
                ),
            ),
            status=TransactionStatus.DRAFT,
        )

        transaction_service.post_draft(journal_id)

        entries = transaction_service.get_transaction(journal_id).entries
        assert [(e.account_id, e.debit, e.credit, e.memo) for e in entries] == [
            (chart["Rent Expense"], Decimal("2500.00"), Decimal("0"), "April rent"),
            (chart["Bank Account"], Decimal("0"), Decimal("2500.00"), None),
        ]
        assert balance_of(chart["Rent Expense"]) == Decimal("2500.00")


class TestEditingSettledDocuments:
    def test_invoice_cannot_drop_below_amount_paid(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        transaction_service.post_customer_payment(_payment(chart, "11800", allocated_to_id=invoice_id))

        with pytest.raises(ValidationError, match="less than the 11,800.00 already paid"):
            transaction_service.update_transaction(invoice_id, _invoice(subtotal="100", gst=None))

        assert transaction_service.get_transaction(invoice_id).total_amount == Decimal("11800.00")
        assert transaction_service.outstanding_amount(invoice_id) == Decimal("0.00")

    def test_invoice_can_grow_after_payment(self, transaction_service, chart):
        invoice_id = transaction_service.post_invoice(_invoice())
        transaction_service.post_customer_payment(_payment(chart, "11800", allocated_to_id=invoice_id))

        transaction_service.update_transaction(invoice_id, _invoice(subtotal="11000"))

        assert transaction_service.outstanding_amount(invoice_id) == Decimal("1000.00")
        assert transaction_service.payment_status(invoice_id) is PaymentStatus.PARTIALLY_PAID

    def test_bill_edit_counts_tds(self, transaction_service, chart):
        bill_id = transaction_service.post_bill(BillInput(date=DAY, subtotal=Decimal("1000")))
        transaction_service.post_vendor_payment(_payment(chart, "1000", allocated_to_id=bill_id))

        with pytest.raises(ValidationError, match="Amount due 900.00"):
            transaction_service.update_transaction(
                bill_id, BillInput(date=DAY, subtotal=Decimal("1000"), tds=TDSDetails("194J", Decimal("100")))
            )


class TestAtomicVoid:
    def test_failed_commit_leaves_original_posted(self, transaction_service, chart, temp_db, balance_of, monkeypatch):
        txn_id = transaction_service.post_invoice(_invoice())

        def failing_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(temp_db._get_session(), "commit", failing_commit)
        with pytest.raises(PersistenceError, match="void transaction"):
            transaction_service.void_transaction(txn_id, "Duplicate")
        monkeypatch.undo()

        assert transaction_service.get_transaction(txn_id).status is TransactionStatus.POSTED
        assert temp_db.list_transactions(transaction_type=TransactionType.REVERSAL) == []
        assert balance_of(chart["Accounts Receivable"]) == Decimal("11800.00")

    def test_void_publishes_reversal_then_original(self, temp_db, events, chart):
        seen = []
        events.subscribe(lambda change: seen.append((change.old and change.old.status, change.new.status)))
        service = TransactionService(temp_db, events)
        txn_id = service.post_invoice(_invoice())
        seen.clear()

        service.void_transaction(txn_id, "Duplicate")

        assert seen == [(None, TransactionStatus.POSTED), (TransactionStatus.POSTED, TransactionStatus.VOID)]


class TestVoidAndRecreate:
    def test_recreates_invoice_for_new_customer(self, transaction_service, chart, balance_of):
        txn_id = transaction_service.post_invoice(_invoice(customer="Acme Traders", reference="INV-7"))

        reversal_id, new_id = transaction_service.void_and_recreate(txn_id, "Wrong customer", "Globex Ltd")

        original = transaction_service.get_transaction(txn_id)
        recreated = transaction_service.get_transaction(new_id)
        assert original.status is TransactionStatus.VOID
        assert original.void_reason == "Wrong customer"
        assert transaction_service.get_transaction(reversal_id).related_transaction_id == txn_id
        assert recreated.status is TransactionStatus.POSTED
        assert recreated.counterparty == "Globex Ltd"
        assert recreated.related_transaction_id == txn_id
        assert recreated.reference == "INV-7"
        assert recreated.total_amount == Decimal("11800.00")
        assert recreated.gst == INTRA_18
        assert balance_of(chart["Accounts Receivable"]) == Decimal("11800.00")
        assert balance_of(chart["Sales Revenue"]) == Decimal("-10000.00")

    def test_recreates_bill_with_tds(self, transaction_service, chart):
        bill_id = transaction_service.post_bill(
            BillInput(
                date=DAY, subtotal=Decimal("10000"), tds=TDSDetails("194J", Decimal("1000")), vendor="Old Vendor"
            )
        )

        _, new_id = transaction_service.void_and_recreate(bill_id, "Wrong vendor", "New Vendor")

        assert transaction_service.get_transaction(new_id).counterparty == "New Vendor"
        assert transaction_service.outstanding_amount(new_id) == Decimal("9000.00")

    def test_journal_cannot_be_recreated(self, transaction_service, chart, temp_db):
        journal_id = transaction_service.post_journal_entry(
            JournalInput(
                date=DAY,
                lines=(
                    JournalLine(account_id=chart["Bank Account"], debit=Decimal("10")),
                    JournalLine(account_id=chart["Sales Revenue"], credit=Decimal("10")),
                ),
            )
        )

        with pytest.raises(ValidationError, match="only invoices and bills"):
            transaction_service.void_and_recreate(journal_id, "Wrong party", "Someone")
        assert transaction_service.get_transaction(journal_id).status is TransactionStatus.POSTED

    def test_requires_new_party(self, transaction_service, chart):
        txn_id = transaction_service.post_invoice(_invoice())
        with pytest.raises(ValidationError, match="new customer or vendor"):
            transaction_service.void_and_recreate(txn_id, "Wrong customer", "  ")
