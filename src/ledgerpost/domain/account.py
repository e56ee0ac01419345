"""Account registry domain service."""

import logging
from typing import Optional
from ledgerpost.database.base import Database
from ledgerpost.domain.entities import Account as AccountEntity, AccountType
from ledgerpost.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    duplicate_account_code,
    duplicate_account_name,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing the chart of accounts.

    Debit/credit totals are owned by the balance aggregator and are never
    written here.
    """

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        parent_id: Optional[int] = None,
        is_gst_account: bool = False,
        is_tds_account: bool = False,
        is_system_account: bool = False,
    ) -> int:
        """Create a new account.

        Args:
            code: Chart code, e.g. "1200"
            name: Account name, unique across the chart
            account_type: Account classification
            parent_id: Optional parent account for grouping
            is_gst_account: Account holds GST input or output tax
            is_tds_account: Account holds tax deducted at source
            is_system_account: Account is used by automatic posting

        Returns:
            Account ID

        Raises:
            ValidationError: If code or name is blank, or parent does not exist
            ConflictError: If code or name already exists
        """
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Account code is required")
        if not name:
            raise ValidationError("Account name is required")
        if self.db.get_account_by_name(name) is not None:
            raise ConflictError(duplicate_account_name(name))
        if self.db.get_account_by_code(code) is not None:
            raise ConflictError(duplicate_account_code(code))
        if parent_id is not None and self.db.get_account(parent_id) is None:
            raise ValidationError(f"Parent account {parent_id} not found")

        account_id = self.db.create_account(
            code=code,
            name=name,
            account_type=account_type,
            parent_id=parent_id,
            is_gst_account=is_gst_account,
            is_tds_account=is_tds_account,
            is_system_account=is_system_account,
        )
        logger.info("Created account %s %s (%s)", code, name, account_type.value)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID, or None if not found."""
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID.

        Raises:
            NotFoundError: If account does not exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(
        self, account_type: Optional[AccountType] = None, include_inactive: bool = False
    ) -> list[AccountEntity]:
        """List accounts ordered by code, optionally of one type."""
        if account_type is not None:
            return self.db.list_accounts_by_type(account_type, include_inactive=include_inactive)
        return self.db.list_accounts(include_inactive=include_inactive)

    def find_by_name(self, name: str) -> Optional[AccountEntity]:
        return self.db.get_account_by_name(name)

    def find_by_code(self, code: str) -> Optional[AccountEntity]:
        return self.db.get_account_by_code(code)

    def find_by_type(self, account_type: AccountType) -> list[AccountEntity]:
        """Active accounts of one type."""
        return self.db.list_accounts_by_type(account_type)

    def find_by_flag(self, flag: str) -> list[AccountEntity]:
        """Active accounts with a flag such as 'is_gst_account' set."""
        return self.db.list_accounts_by_flag(flag)

    def rename_account(self, account_id: int, name: str, code: Optional[str] = None) -> None:
        """Rename an account and optionally change its code.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the new name or code belongs to another account
        """
        self.require_account(account_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")

        existing = self.db.get_account_by_name(name)
        if existing is not None and existing.id != account_id:
            raise ConflictError(duplicate_account_name(name))
        if code is not None:
            existing = self.db.get_account_by_code(code)
            if existing is not None and existing.id != account_id:
                raise ConflictError(duplicate_account_code(code))

        self.db.update_account(account_id, name=name, code=code)

    def deactivate_account(self, account_id: int) -> None:
        """Hide an account from posting and resolution. History is kept.

        Raises:
            NotFoundError: If account not found
            DependencyError: If the account still carries a balance
        """
        account = self.require_account(account_id)
        if account.balance:
            raise DependencyError(
                f"Cannot deactivate account {account_id} ({account.name}): "
                f"its balance is {account.balance:,.2f}. Clear the balance first."
            )
        self.db.update_account(account_id, is_active=False)
        logger.info("Deactivated account %s", account_id)

    def reactivate_account(self, account_id: int) -> None:
        self.require_account(account_id)
        self.db.update_account(account_id, is_active=True)
        logger.info("Reactivated account %s", account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that no ledger entry or child account references.

        Raises:
            NotFoundError: If account not found
            DependencyError: If ledger entries or child accounts reference it
        """
        self.require_account(account_id)
        entry_count = self.db.count_entries_for_account(account_id)
        if entry_count > 0:
            raise DependencyError(account_delete_blocked(account_id, entry_count))
        children = [account.code for account in self.db.list_accounts() if account.parent_id == account_id]
        if children:
            raise DependencyError(
                f"Cannot delete account {account_id}: child accounts {', '.join(children)} "
                "still belong to it"
            )
        self.db.delete_account(account_id)
        logger.info("Deleted account %s", account_id)
