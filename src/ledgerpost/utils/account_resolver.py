"""Utility for resolving account references to IDs."""

from ledgerpost.domain.account import AccountService
from ledgerpost.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account ID, code or name to an account ID.

    A numeric string is tried as an ID first, then as a code (chart codes such
    as "1200" are numeric too).

    Raises:
        NotFoundError: If no account matches
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    reference = account.strip()
    if reference.isdigit():
        found = account_service.get_account(int(reference))
        if found is not None:
            return found.id

    found = account_service.find_by_code(reference) or account_service.find_by_name(reference)
    if found is not None:
        return found.id

    raise NotFoundError(f"Account '{account}' not found")
