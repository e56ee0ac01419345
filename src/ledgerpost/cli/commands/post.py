"""Commands that post documents to the ledger."""

import click
from decimal import Decimal
from ledgerpost.cli.account_resolution import resolve_account_or_exit
from ledgerpost.cli.date_filters import parse_date_option
from ledgerpost.cli.error_handling import handle_domain_error, warn_if_balances_stale
from ledgerpost.cli.formatting import format_amount
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.entities import (
    BillInput,
    GSTType,
    InvoiceInput,
    JournalInput,
    JournalLine,
    PaymentAllocation,
    PaymentInput,
    TransactionStatus,
)
from ledgerpost.domain.tax import calculate_gst, calculate_tds
from ledgerpost.domain.transaction import TransactionService
from ledgerpost.utils.amount_parser import MONEY_PLACES, parse_amount

DEFAULT_BANK_ACCOUNT = "Bank Account"


def _parse_amount_option(ctx, value: str, label: str, places: int | None = MONEY_PLACES) -> Decimal:
    try:
        return parse_amount(value, places=places)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _transaction_service(ctx) -> TransactionService:
    return TransactionService(ctx.obj["db"], ctx.obj["events"])


def _status(draft: bool) -> TransactionStatus:
    return TransactionStatus.DRAFT if draft else TransactionStatus.POSTED


def _report_saved(ctx, service: TransactionService, transaction_id: int) -> None:
    txn = service.require_transaction(transaction_id)
    verb = "Saved draft" if txn.status is TransactionStatus.DRAFT else "Posted"
    click.echo(
        f"{verb} {txn.transaction_type.value} {transaction_id}: "
        f"total {format_amount(txn.total_amount)} ({len(txn.entries)} ledger entries)"
    )
    warn_if_balances_stale(ctx)


def _gst_options(func):
    func = click.option(
        "--inter-state", is_flag=True, help="Charge IGST instead of CGST + SGST"
    )(func)
    func = click.option("--gst-rate", help="GST rate in percent (e.g. 18)")(func)
    return func


def _gst_details(ctx, subtotal: Decimal, gst_rate: str | None, inter_state: bool):
    if gst_rate is None:
        return None
    rate = _parse_amount_option(ctx, gst_rate, "GST rate", places=None)
    if rate == 0:
        return None
    gst_type = GSTType.INTER_STATE if inter_state else GSTType.INTRA_STATE
    return calculate_gst(subtotal, rate, gst_type)


@click.command("invoice")
@click.option("--date", "date_str", required=True, help="Invoice date (YYYY-MM-DD or 'today')")
@click.option("--amount", required=True, help="Taxable value before GST (e.g. 10000 or ₹10,000)")
@_gst_options
@click.option("--customer", help="Customer name")
@click.option("--description", help="Invoice description")
@click.option("--reference", help="Invoice number")
@click.option("--draft", is_flag=True, help="Save as draft without affecting balances")
@click.pass_context
def invoice(
    ctx,
    date_str: str,
    amount: str,
    gst_rate: str | None,
    inter_state: bool,
    customer: str | None,
    description: str | None,
    reference: str | None,
    draft: bool,
):
    """Post a customer invoice.

    Examples:
        ledgerpost invoice --date 2024-04-15 --amount 10000 --gst-rate 18 --customer "Aqua Ltd"
        ledgerpost invoice --date today --amount 50000 --gst-rate 18 --inter-state
    """
    service = _transaction_service(ctx)
    txn_date = parse_date_option(ctx, date_str, "date")
    subtotal = _parse_amount_option(ctx, amount, "amount")

    try:
        fields = InvoiceInput(
            date=txn_date,
            subtotal=subtotal,
            gst=_gst_details(ctx, subtotal, gst_rate, inter_state),
            customer=customer,
            description=description,
            reference=reference,
        )
        transaction_id = service.post_invoice(fields, status=_status(draft))
    except ValueError as e:
        handle_domain_error(ctx, e)
    _report_saved(ctx, service, transaction_id)


@click.command("bill")
@click.option("--date", "date_str", required=True, help="Bill date (YYYY-MM-DD or 'today')")
@click.option("--amount", required=True, help="Taxable value before GST")
@_gst_options
@click.option("--tds-section", help="TDS section to withhold under (e.g. 194C, 194J)")
@click.option("--pan", help="Vendor PAN; without it TDS is withheld at 20%")
@click.option("--senior-citizen", is_flag=True, help="Vendor is a senior citizen (194A exemption)")
@click.option("--vendor", help="Vendor name")
@click.option("--description", help="Bill description")
@click.option("--reference", help="Vendor bill number")
@click.option("--draft", is_flag=True, help="Save as draft without affecting balances")
@click.pass_context
def bill(
    ctx,
    date_str: str,
    amount: str,
    gst_rate: str | None,
    inter_state: bool,
    tds_section: str | None,
    pan: str | None,
    senior_citizen: bool,
    vendor: str | None,
    description: str | None,
    reference: str | None,
    draft: bool,
):
    """Post a vendor bill, withholding TDS when a section is given.

    TDS is computed on the taxable value, before GST.

    Examples:
        ledgerpost bill --date 2024-04-20 --amount 50000 --gst-rate 18 --tds-section 194C --pan ABCDE1234F
    """
    service = _transaction_service(ctx)
    txn_date = parse_date_option(ctx, date_str, "date")
    subtotal = _parse_amount_option(ctx, amount, "amount")

    try:
        tds = None
        if tds_section:
            tds = calculate_tds(
                subtotal, tds_section.upper(), pan_number=pan, is_senior_citizen=senior_citizen
            ).to_details()
            if not tds.amount:
                tds = None
        fields = BillInput(
            date=txn_date,
            subtotal=subtotal,
            gst=_gst_details(ctx, subtotal, gst_rate, inter_state),
            tds=tds,
            vendor=vendor,
            description=description,
            reference=reference,
        )
        transaction_id = service.post_bill(fields, status=_status(draft))
    except ValueError as e:
        handle_domain_error(ctx, e)
    _report_saved(ctx, service, transaction_id)


@click.command("payment")
@click.option("--customer", "direction", flag_value="customer", help="Money received from a customer")
@click.option("--vendor", "direction", flag_value="vendor", help="Money paid to a vendor")
@click.option("--date", "date_str", required=True, help="Payment date (YYYY-MM-DD or 'today')")
@click.option("--amount", required=True, help="Payment amount")
@click.option(
    "--bank",
    default=DEFAULT_BANK_ACCOUNT,
    show_default=True,
    help="Bank or cash account ID, code or name",
)
@click.option(
    "--against",
    "against",
    multiple=True,
    help="Invoice or bill this payment settles: ID for the whole amount, or ID=AMOUNT (repeatable)",
)
@click.option("--party", help="Customer or vendor name")
@click.option("--description", help="Payment description")
@click.option("--reference", help="Cheque, UTR or receipt number")
@click.option("--draft", is_flag=True, help="Save as draft without affecting balances")
@click.pass_context
def payment(
    ctx,
    direction: str | None,
    date_str: str,
    amount: str,
    bank: str,
    against: tuple[str, ...],
    party: str | None,
    description: str | None,
    reference: str | None,
    draft: bool,
):
    """Record a customer receipt (--customer) or a vendor payment (--vendor).

    Examples:
        ledgerpost payment --customer --date today --amount 11800 --against 1
        ledgerpost payment --customer --date today --amount 15000 --against 1=11800 --against 2=3200
        ledgerpost payment --vendor --date today --amount 58000 --bank "HDFC Current Account"
    """
    if direction is None:
        click.echo("Error: Specify either --customer or --vendor", err=True)
        ctx.exit(1)

    service = _transaction_service(ctx)
    bank_account_id = resolve_account_or_exit(ctx, AccountService(ctx.obj["db"]), bank)
    txn_date = parse_date_option(ctx, date_str, "date")
    payment_amount = _parse_amount_option(ctx, amount, "amount")

    allocations = _allocations(ctx, against, payment_amount)
    try:
        fields = PaymentInput(
            date=txn_date,
            amount=payment_amount,
            bank_account_id=bank_account_id,
            counterparty=party,
            description=description,
            reference=reference,
            allocations=allocations,
        )
        if direction == "customer":
            transaction_id = service.post_customer_payment(fields, status=_status(draft))
        else:
            transaction_id = service.post_vendor_payment(fields, status=_status(draft))
    except ValueError as e:
        handle_domain_error(ctx, e)
    _report_saved(ctx, service, transaction_id)


def _allocations(ctx, specs: tuple[str, ...], payment_amount: Decimal) -> tuple[PaymentAllocation, ...]:
    allocations = []
    for spec in specs:
        document, sep, amount = spec.partition("=")
        if not document.strip().isdigit() or (sep and not amount):
            click.echo(f"Error: Invalid --against '{spec}', expected ID or ID=AMOUNT", err=True)
            ctx.exit(1)
        if not sep and len(specs) > 1:
            click.echo("Error: Give an amount for each --against when settling several documents", err=True)
            ctx.exit(1)
        value = _parse_amount_option(ctx, amount, "allocation amount") if sep else payment_amount
        allocations.append((int(document), value))
    try:
        return tuple(PaymentAllocation(document_id, value) for document_id, value in allocations)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _journal_lines(ctx, account_service: AccountService, specs: tuple[str, ...], side: str):
    lines = []
    for spec in specs:
        account, sep, amount = spec.rpartition("=")
        if not sep or not account:
            click.echo(f"Error: Invalid --{side} '{spec}', expected ACCOUNT=AMOUNT", err=True)
            ctx.exit(1)
        account_id = resolve_account_or_exit(ctx, account_service, account)
        value = _parse_amount_option(ctx, amount, f"{side} amount")
        if side == "debit":
            lines.append(JournalLine(account_id=account_id, debit=value))
        else:
            lines.append(JournalLine(account_id=account_id, credit=value))
    return lines


@click.command("journal")
@click.option("--date", "date_str", required=True, help="Entry date (YYYY-MM-DD or 'today')")
@click.option("--debit", "debits", multiple=True, help="ACCOUNT=AMOUNT to debit (repeatable)")
@click.option("--credit", "credits", multiple=True, help="ACCOUNT=AMOUNT to credit (repeatable)")
@click.option("--description", help="Narration")
@click.option("--reference", help="Voucher number")
@click.option("--draft", is_flag=True, help="Save as draft without affecting balances")
@click.pass_context
def journal(
    ctx,
    date_str: str,
    debits: tuple[str, ...],
    credits: tuple[str, ...],
    description: str | None,
    reference: str | None,
    draft: bool,
):
    """Post a manual journal entry.

    Examples:
        ledgerpost journal --date today --debit "Rent Expense=25000" --credit "Bank Account=25000"
    """
    service = _transaction_service(ctx)
    account_service = AccountService(ctx.obj["db"])
    txn_date = parse_date_option(ctx, date_str, "date")
    lines = _journal_lines(ctx, account_service, debits, "debit")
    lines += _journal_lines(ctx, account_service, credits, "credit")

    try:
        fields = JournalInput(
            date=txn_date, lines=tuple(lines), description=description, reference=reference
        )
        transaction_id = service.post_journal_entry(fields, status=_status(draft))
    except ValueError as e:
        handle_domain_error(ctx, e)
    _report_saved(ctx, service, transaction_id)


def register_commands(cli):
    """Register posting commands with main CLI."""
    cli.add_command(invoice)
    cli.add_command(bill)
    cli.add_command(payment)
    cli.add_command(journal)
