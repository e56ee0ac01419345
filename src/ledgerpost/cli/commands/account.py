"""Account management commands."""

import click
from ledgerpost.cli.account_resolution import resolve_account_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.cli.formatting import format_amount
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.entities import AccountType

ACCOUNT_TYPES = [account_type.value for account_type in AccountType]


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--parent", help="Parent account ID, code or name")
@click.option("--gst", "is_gst_account", is_flag=True, help="Account holds GST input or output tax")
@click.option("--tds", "is_tds_account", is_flag=True, help="Account holds tax deducted at source")
@click.option("--system", "is_system_account", is_flag=True, help="Account is used by automatic posting")
@click.pass_context
def create_account(
    ctx,
    code: str,
    name: str,
    account_type: str,
    parent: str | None,
    is_gst_account: bool,
    is_tds_account: bool,
    is_system_account: bool,
):
    """Create a new account.

    Examples:
        ledgerpost account create 1110 "HDFC Current Account" --type ASSET
        ledgerpost account create 2201 "CGST Payable" --type LIABILITY --gst --system
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    parent_id = None
    if parent is not None:
        parent_id = resolve_account_or_exit(ctx, service, parent)

    try:
        account_id = service.create_account(
            code=code,
            name=name,
            account_type=AccountType(account_type.upper()),
            parent_id=parent_id,
            is_gst_account=is_gst_account,
            is_tds_account=is_tds_account,
            is_system_account=is_system_account,
        )
        click.echo(f"Created account {code} '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    help="Only accounts of this type",
)
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, account_type: str | None, include_inactive: bool):
    """List accounts with their balances."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(
        account_type=AccountType(account_type.upper()) if account_type else None,
        include_inactive=include_inactive,
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        flags = "".join(
            marker
            for marker, is_set in (
                ("G", acc.is_gst_account),
                ("T", acc.is_tds_account),
                ("S", acc.is_system_account),
            )
            if is_set
        )
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.code:6s} | {acc.name:30s} | {acc.account_type.value:9s} | "
            f"{flags:3s} | {format_amount(acc.natural_balance):>15s}{status}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--code", help="New account code (optional)")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, code: str | None) -> None:
    """Rename an account.

    ACCOUNT can be an account ID, code or name.

    Examples:
        ledgerpost account rename "Bank Account" "HDFC Current Account"
        ledgerpost account rename 1100 "Cash at Bank" --code 1110
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.rename_account(account_id=account_id, name=new_name, code=code)
        click.echo(f"Renamed account to '{new_name}'")
        if code is not None:
            click.echo(f"Account code updated to '{code}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account so nothing new is posted to it."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("reactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def reactivate_account(ctx, account: str) -> None:
    """Reactivate a deactivated account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.reactivate_account(account_id)
        click.echo(f"Reactivated account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account ID, code or name.

    The account can only be deleted if no ledger entry references it.
    Deactivate accounts that have history instead.

    Examples:
        ledgerpost account delete "Old Petty Cash"
        ledgerpost account delete 7 --yes
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
