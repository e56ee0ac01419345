"""CLI error handling helpers."""

import click

from ledgerpost.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def warn_if_balances_stale(ctx: click.Context) -> None:
    """Tell the user when a saved transaction did not reach the account totals."""
    events = ctx.obj["events"]
    if events.failed_changes:
        ids = ", ".join(str(change.transaction_id) for change in events.failed_changes)
        click.echo(
            f"Warning: account balances were not updated for transaction(s) {ids}. "
            "Run 'ledgerpost recalculate' to repair them.",
            err=True,
        )
