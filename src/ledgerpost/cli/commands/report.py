"""Reporting commands."""

import click
from ledgerpost.cli.account_resolution import resolve_account_or_exit
from ledgerpost.cli.date_filters import parse_date_option, resolve_cli_date_range
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.cli.formatting import format_amount
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.reports import ReportService


@click.group()
def report_group():
    """Financial reports."""
    pass


@report_group.command("trial-balance")
@click.option("--as-of", help="Only include entries dated on or before this date")
@click.pass_context
def trial_balance(ctx, as_of: str | None):
    """Show the trial balance grouped by account type."""
    service = ReportService(ctx.obj["db"])
    as_of_date = parse_date_option(ctx, as_of, "--as-of date")
    report = service.get_trial_balance(as_of_date=as_of_date)

    title = "Trial Balance"
    if as_of_date is not None:
        title += f" as of {as_of_date.isoformat()}"
    click.echo(f"\n{title}")
    click.echo("=" * 80)
    click.echo(f"{'Code':6s}  {'Account':38s}  {'Debit':>15s}  {'Credit':>15s}")
    for section in report.sections:
        if not section.lines:
            continue
        click.echo(f"\n{section.account_type.value}")
        click.echo("-" * 80)
        for line in section.lines:
            click.echo(
                f"{line.code:6s}  {line.name:38s}  "
                f"{format_amount(line.debit, blank_zero=True):>15s}  "
                f"{format_amount(line.credit, blank_zero=True):>15s}"
            )
    click.echo("=" * 80)
    click.echo(
        f"{'':6s}  {'Total':38s}  {format_amount(report.total_debit):>15s}  "
        f"{format_amount(report.total_credit):>15s}"
    )
    if report.warning:
        click.echo(f"\n{report.warning}", err=True)
        click.echo("Run 'ledgerpost recalculate' to rebuild balances from the ledger.", err=True)


@report_group.command("ledger")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'this month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def account_ledger(ctx, account: str, start_date: str | None, end_date: str | None):
    """Show an account's entries with a running balance.

    ACCOUNT can be an account ID, code or name.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)
    try:
        ledger = ReportService(db).get_account_ledger(account_id, start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nLedger: {ledger.account.code} {ledger.account.name}")
    click.echo("=" * 100)
    click.echo(
        f"{'Date':10s}  {'Txn':>5s}  {'Type':17s}  {'Debit':>14s}  {'Credit':>14s}  "
        f"{'Balance':>15s}  Memo"
    )
    click.echo(f"{'':10s}  {'':5s}  {'Opening balance':17s}  {'':14s}  {'':14s}  "
               f"{format_amount(ledger.opening_balance):>15s}")
    for line in ledger.lines:
        click.echo(
            f"{line.date.isoformat():10s}  {line.transaction_id:5d}  "
            f"{line.transaction_type.value:17s}  "
            f"{format_amount(line.debit, blank_zero=True):>14s}  "
            f"{format_amount(line.credit, blank_zero=True):>14s}  "
            f"{format_amount(line.running_balance):>15s}  {line.memo or ''}"
        )
    click.echo("=" * 100)
    click.echo(
        f"{'':10s}  {'':5s}  {'Closing balance':17s}  {format_amount(ledger.total_debit):>14s}  "
        f"{format_amount(ledger.total_credit):>14s}  {format_amount(ledger.closing_balance):>15s}"
    )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
