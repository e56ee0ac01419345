"""Balance reconciliation command."""

import click
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.cli.formatting import format_amount
from ledgerpost.domain.aggregator import BalanceAggregator


@click.command("recalculate")
@click.pass_context
def recalculate(ctx):
    """Rebuild every account balance from the full ledger."""
    aggregator = BalanceAggregator(ctx.obj["db"], max_retries=ctx.obj["settings"].balance_retries)
    try:
        report = aggregator.recalculate_all_balances()
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Checked {report.accounts_checked} accounts against "
        f"{report.transactions_scanned} transactions."
    )
    if not report.changed:
        click.echo("All balances are correct.")
        return

    click.echo(f"Corrected {len(report.changes)} account(s):")
    for change in report.changes:
        click.echo(
            f"  {change.account_name}: {format_amount(change.old_balance)} -> "
            f"{format_amount(change.new_balance)}"
        )


def register_commands(cli):
    """Register recalculate command with main CLI."""
    cli.add_command(recalculate)
