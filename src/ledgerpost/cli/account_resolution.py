"""Resolve account references given on the command line."""

import click
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.errors import NotFoundError
from ledgerpost.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Return the ID for an account ID, code or name; exit 1 if none matches."""
    try:
        return resolve_account(account_service, account)
    except NotFoundError as e:
        handle_domain_error(ctx, e)
