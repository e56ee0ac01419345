"""Main CLI entry point."""

import click
from ledgerpost.config import load_settings
from ledgerpost.database.factories import create_sqlite_database
from ledgerpost.domain.aggregator import BalanceAggregator
from ledgerpost.domain.errors import ConfigurationError
from ledgerpost.domain.events import TransactionEvents
from ledgerpost.logging_config import LOG_FORMATS, setup_logging

# Import and register all commands at module level
from ledgerpost.cli.commands import (
    account,
    init_accounts,
    post,
    transaction,
    report,
    recalculate,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERPOST_DB_PATH environment variable)",
    envvar="LEDGERPOST_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (overrides LEDGERPOST_LOG_LEVEL environment variable)",
    envvar="LEDGERPOST_LOG_LEVEL",
)
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    help="Log output format (overrides LEDGERPOST_LOG_FORMAT environment variable)",
    envvar="LEDGERPOST_LOG_FORMAT",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None, log_format: str | None):
    """Ledgerpost - double-entry ledger posting.

    Post customer invoices, vendor bills, payments and journal entries with
    Indian GST and TDS, and keep account balances and the trial balance in
    step with every posting.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    setup_logging(log_level or settings.log_level, log_format or settings.log_format)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        events = TransactionEvents()
        BalanceAggregator(db, max_retries=settings.balance_retries).attach(events)
        ctx.obj["db"] = db
        ctx.obj["events"] = events
        ctx.obj["settings"] = settings


# Register all commands
account.register_commands(cli)
init_accounts.register_commands(cli)
post.register_commands(cli)
transaction.register_commands(cli)
report.register_commands(cli)
recalculate.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
