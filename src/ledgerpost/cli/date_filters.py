"""CLI helpers for date options."""

from datetime import date

import click

from ledgerpost.utils.date_parser import parse_date


def parse_date_option(ctx: click.Context, value: str | None, label: str) -> date | None:
    """Parse an optional date option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
) -> tuple[date | None, date | None]:
    """Resolve --start-date/--end-date into an ordered date range."""
    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    if start is not None and end is not None and start > end:
        click.echo("Error: --start-date must be on or before --end-date", err=True)
        ctx.exit(1)
    return start, end
