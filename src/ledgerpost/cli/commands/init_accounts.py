"""Initialize the standard chart of accounts."""

import click
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.entities import AccountType

ASSET = AccountType.ASSET
LIABILITY = AccountType.LIABILITY
EQUITY = AccountType.EQUITY
REVENUE = AccountType.REVENUE
EXPENSE = AccountType.EXPENSE

# (code, name, type, flags)
INITIAL_ACCOUNTS = [
    ("1000", "Cash in Hand", ASSET, {}),
    ("1100", "Bank Account", ASSET, {}),
    ("1200", "Accounts Receivable", ASSET, {"is_system_account": True}),
    ("1301", "CGST Input", ASSET, {"is_gst_account": True, "is_system_account": True}),
    ("1302", "SGST Input", ASSET, {"is_gst_account": True, "is_system_account": True}),
    ("1303", "IGST Input", ASSET, {"is_gst_account": True, "is_system_account": True}),
    ("1400", "TDS Receivable", ASSET, {"is_tds_account": True}),
    ("1500", "Inventory", ASSET, {}),
    ("2100", "Accounts Payable", LIABILITY, {"is_system_account": True}),
    ("2201", "CGST Payable", LIABILITY, {"is_gst_account": True, "is_system_account": True}),
    ("2202", "SGST Payable", LIABILITY, {"is_gst_account": True, "is_system_account": True}),
    ("2203", "IGST Payable", LIABILITY, {"is_gst_account": True, "is_system_account": True}),
    ("2300", "TDS Payable", LIABILITY, {"is_tds_account": True, "is_system_account": True}),
    ("3000", "Owner's Capital", EQUITY, {}),
    ("3100", "Retained Earnings", EQUITY, {}),
    ("4100", "Sales Revenue", REVENUE, {"is_system_account": True}),
    ("4200", "Service Revenue", REVENUE, {}),
    ("5100", "Cost of Goods Sold", EXPENSE, {"is_system_account": True}),
    ("5200", "Salaries and Wages", EXPENSE, {}),
    ("5300", "Rent Expense", EXPENSE, {}),
    ("5400", "Professional Fees", EXPENSE, {}),
]


@click.command("init-accounts")
@click.option("--force", is_flag=True, help="Add missing standard accounts to an existing chart")
@click.pass_context
def init_accounts(ctx, force: bool):
    """Initialize database with the standard Indian chart of accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    existing = service.list_accounts(include_inactive=True)
    if existing and not force:
        click.echo("Accounts already exist. Use --force to add missing standard accounts.")
        return

    click.echo("Creating standard chart of accounts...")

    created = 0
    skipped = 0
    errors = 0
    for code, name, account_type, flags in INITIAL_ACCOUNTS:
        if service.find_by_code(code) is not None or service.find_by_name(name) is not None:
            skipped += 1
            continue
        try:
            service.create_account(code=code, name=name, account_type=account_type, **flags)
            created += 1
        except ValueError as e:
            click.echo(f"Warning: Could not create account '{name}': {e}", err=True)
            errors += 1

    message = f"Created {created} accounts"
    if skipped:
        message += f", skipped {skipped} existing"
    if errors:
        message += f" with {errors} errors"
    click.echo(message + ".")


def register_commands(cli):
    """Register init-accounts command with main CLI."""
    cli.add_command(init_accounts)
