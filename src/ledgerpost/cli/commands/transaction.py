"""Transaction management commands."""

import click
from ledgerpost.cli.account_resolution import resolve_account_or_exit
from ledgerpost.cli.date_filters import parse_date_option, resolve_cli_date_range
from ledgerpost.cli.error_handling import handle_domain_error, warn_if_balances_stale
from ledgerpost.cli.formatting import format_amount
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.entities import TransactionStatus, TransactionType
from ledgerpost.domain.transaction import SETTLES, TransactionService

TRANSACTION_TYPES = [transaction_type.value for transaction_type in TransactionType]
STATUSES = [status.value for status in TransactionStatus]


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


def _service(ctx) -> TransactionService:
    return TransactionService(ctx.obj["db"], ctx.obj["events"])


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice(TRANSACTION_TYPES, case_sensitive=False),
    help="Only transactions of this type",
)
@click.option(
    "--status", type=click.Choice(STATUSES, case_sensitive=False), help="Only transactions with this status"
)
@click.option("--account", help="Only transactions touching this account (ID, code or name)")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    transaction_type: str | None,
    status: str | None,
    account: str | None,
):
    """View transactions with optional filters."""
    service = _service(ctx)
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(ctx.obj["db"]), account)

    transactions = service.list_transactions(
        start_date=start,
        end_date=end,
        transaction_type=TransactionType(transaction_type.upper()) if transaction_type else None,
        status=TransactionStatus(status.upper()) if status else None,
        account_id=account_id,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(
        f"{'ID':>5s}  {'Date':10s}  {'Type':17s}  {'Status':6s}  {'Total':>14s}  Description"
    )
    click.echo("-" * 90)
    for txn in transactions:
        click.echo(
            f"{txn.id:5d}  {txn.date.isoformat():10s}  {txn.transaction_type.value:17s}  "
            f"{txn.status.value:6s}  {format_amount(txn.total_amount):>14s}  "
            f"{txn.description or txn.counterparty or ''}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction with its ledger entries."""
    service = _service(ctx)
    account_service = AccountService(ctx.obj["db"])
    try:
        txn = service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transaction {txn.id}: {txn.transaction_type.value} ({txn.status.value})")
    click.echo(f"Date:        {txn.date.isoformat()}")
    if txn.reference:
        click.echo(f"Reference:   {txn.reference}")
    if txn.counterparty:
        click.echo(f"Party:       {txn.counterparty}")
    if txn.description:
        click.echo(f"Description: {txn.description}")
    if txn.related_transaction_id:
        click.echo(f"Related to:  transaction {txn.related_transaction_id}")
    click.echo(f"Subtotal:    {format_amount(txn.subtotal)}")
    if txn.tax_amount:
        gst_type = txn.gst_type.value if txn.gst_type else ""
        click.echo(f"GST:         {format_amount(txn.tax_amount)} {gst_type}".rstrip())
    if txn.tds_amount:
        click.echo(f"TDS:         {format_amount(txn.tds_amount)} u/s {txn.tds_section}")
    click.echo(f"Total:       {format_amount(txn.total_amount)}")
    if txn.transaction_type in SETTLES.values() and txn.status is TransactionStatus.POSTED:
        click.echo(f"Outstanding: {format_amount(service.outstanding_amount(txn.id))}")
        click.echo(f"Payment:     {service.payment_status(txn.id).value}")
    for allocation in txn.allocations:
        click.echo(f"Settles:     transaction {allocation.document_id} ({format_amount(allocation.amount)})")
    if txn.void_reason:
        click.echo(f"Void reason: {txn.void_reason}")

    click.echo()
    click.echo(f"{'Account':36s}  {'Debit':>14s}  {'Credit':>14s}  Memo")
    click.echo("-" * 90)
    for entry in txn.entries:
        account = account_service.get_account(entry.account_id)
        label = f"{account.code} {account.name}" if account else str(entry.account_id)
        click.echo(
            f"{label:36s}  {format_amount(entry.debit, blank_zero=True):>14s}  "
            f"{format_amount(entry.credit, blank_zero=True):>14s}  {entry.memo or ''}"
        )


@transaction_group.command("post")
@click.argument("transaction_id", type=int)
@click.pass_context
def post_draft(ctx, transaction_id: int):
    """Post a draft transaction so it affects balances."""
    service = _service(ctx)
    try:
        service.post_draft(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Posted transaction {transaction_id}")
    warn_if_balances_stale(ctx)


@transaction_group.command("void")
@click.argument("transaction_id", type=int)
@click.option("--reason", required=True, help="Why the transaction is being voided")
@click.option("--date", "date_str", help="Date of the reversal (defaults to the original date)")
@click.option("--recreate-for", "recreate_for", help="Post a copy of the invoice or bill for this customer or vendor")
@click.pass_context
def void_transaction(ctx, transaction_id: int, reason: str, date_str: str | None, recreate_for: str | None):
    """Void a posted transaction by posting a linked reversal.

    With --recreate-for, an invoice or bill raised against the wrong party
    is voided and posted again for the right one in the same write.

    Examples:
        ledgerpost transaction void 12 --reason "Duplicate invoice"
        ledgerpost transaction void 12 --reason "Wrong customer" --recreate-for "Globex Ltd"
    """
    service = _service(ctx)
    void_date = parse_date_option(ctx, date_str, "date")
    new_id = None
    try:
        if recreate_for is not None:
            reversal_id, new_id = service.void_and_recreate(
                transaction_id, reason, recreate_for, void_date=void_date
            )
        else:
            reversal_id = service.void_transaction(transaction_id, reason, void_date=void_date)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Voided transaction {transaction_id} (reversal: {reversal_id})")
    if new_id is not None:
        click.echo(f"Recreated as transaction {new_id} for {recreate_for.strip()}")
    warn_if_balances_stale(ctx)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool):
    """Delete a draft transaction. Posted transactions must be voided."""
    service = _service(ctx)
    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
