"""Resolution of semantic system-account roles to chart accounts."""

import logging
from typing import Iterable, Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    Account,
    AccountResolution,
    AccountType,
    GSTDetails,
    GSTType,
    SystemAccountRole as Role,
    SystemAccounts,
    TDSDetails,
    TransactionType,
)

logger = logging.getLogger(__name__)

ACCOUNTS_RECEIVABLE_NAME = "Accounts Receivable"
ACCOUNTS_PAYABLE_NAME = "Accounts Payable"
PREFERRED_REVENUE_NAME = "Sales Revenue"
PREFERRED_EXPENSE_NAME = "Cost of Goods Sold"

# role -> (tax component looked for in the account name, account type)
GST_ROLES = {
    Role.CGST_PAYABLE: ("CGST", AccountType.LIABILITY),
    Role.SGST_PAYABLE: ("SGST", AccountType.LIABILITY),
    Role.IGST_PAYABLE: ("IGST", AccountType.LIABILITY),
    Role.CGST_INPUT: ("CGST", AccountType.ASSET),
    Role.SGST_INPUT: ("SGST", AccountType.ASSET),
    Role.IGST_INPUT: ("IGST", AccountType.ASSET),
}

BASE_ROLES = {
    TransactionType.CUSTOMER_INVOICE: (Role.ACCOUNTS_RECEIVABLE, Role.REVENUE),
    TransactionType.VENDOR_BILL: (Role.ACCOUNTS_PAYABLE, Role.EXPENSE),
    TransactionType.CUSTOMER_PAYMENT: (Role.ACCOUNTS_RECEIVABLE,),
    TransactionType.VENDOR_PAYMENT: (Role.ACCOUNTS_PAYABLE,),
    TransactionType.JOURNAL_ENTRY: (),
    TransactionType.REVERSAL: (),
}


def _first_active(accounts: Iterable[Account]) -> Optional[Account]:
    for account in accounts:
        if account.is_active:
            return account
    return None


class SystemAccountResolver:
    """Looks up the accounts that automatic posting credits and debits.

    Lookups are read-only and never create accounts: a role with no matching
    active account resolves to None.
    """

    def __init__(self, db: Database):
        self.db = db

    def _by_name(self, name: str) -> Optional[int]:
        account = self.db.get_account_by_name(name)
        if account is None or not account.is_active:
            return None
        return account.id

    def _by_type(self, account_type: AccountType, preferred_name: str) -> Optional[int]:
        candidates = self.db.list_accounts_by_type(account_type)
        preferred = _first_active(acc for acc in candidates if acc.name == preferred_name)
        chosen = preferred or _first_active(candidates)
        return chosen.id if chosen else None

    def _gst_accounts(self) -> dict[Role, Optional[int]]:
        gst_accounts = self.db.list_accounts_by_flag("is_gst_account")
        resolved = {}
        for role, (component, account_type) in GST_ROLES.items():
            match = _first_active(
                acc
                for acc in gst_accounts
                if acc.account_type is account_type and component in acc.name.upper()
            )
            resolved[role] = match.id if match else None
        return resolved

    def _tds_payable(self) -> Optional[int]:
        match = _first_active(
            acc
            for acc in self.db.list_accounts_by_flag("is_tds_account")
            if acc.account_type is AccountType.LIABILITY
        )
        return match.id if match else None

    def resolve(self) -> SystemAccounts:
        """Resolve every role. Unresolved roles map to None."""
        accounts: dict[Role, Optional[int]] = {
            Role.ACCOUNTS_RECEIVABLE: self._by_name(ACCOUNTS_RECEIVABLE_NAME),
            Role.ACCOUNTS_PAYABLE: self._by_name(ACCOUNTS_PAYABLE_NAME),
            Role.REVENUE: self._by_type(AccountType.REVENUE, PREFERRED_REVENUE_NAME),
            Role.EXPENSE: self._by_type(AccountType.EXPENSE, PREFERRED_EXPENSE_NAME),
            Role.TDS_PAYABLE: self._tds_payable(),
        }
        accounts.update(self._gst_accounts())
        logger.debug(
            "Resolved system accounts: %s",
            {role.value: account_id for role, account_id in accounts.items()},
        )
        return SystemAccounts(accounts=accounts)

    @staticmethod
    def required_roles(
        transaction_type: TransactionType,
        gst: Optional[GSTDetails] = None,
        tds: Optional[TDSDetails] = None,
    ) -> tuple[Role, ...]:
        """Roles a transaction of this type needs, given its tax split."""
        roles = list(BASE_ROLES[transaction_type])
        if gst is not None and transaction_type in (
            TransactionType.CUSTOMER_INVOICE,
            TransactionType.VENDOR_BILL,
        ):
            suffix = "PAYABLE" if transaction_type is TransactionType.CUSTOMER_INVOICE else "INPUT"
            if gst.gst_type is GSTType.INTRA_STATE:
                if gst.cgst_amount:
                    roles.append(Role[f"CGST_{suffix}"])
                if gst.sgst_amount:
                    roles.append(Role[f"SGST_{suffix}"])
            elif gst.igst_amount:
                roles.append(Role[f"IGST_{suffix}"])
        if tds is not None and tds.amount and transaction_type is TransactionType.VENDOR_BILL:
            roles.append(Role.TDS_PAYABLE)
        return tuple(roles)

    def validate(
        self,
        accounts: SystemAccounts,
        transaction_type: TransactionType,
        gst: Optional[GSTDetails] = None,
        tds: Optional[TDSDetails] = None,
    ) -> list[Role]:
        """Required roles that did not resolve, in requirement order."""
        return [
            role
            for role in self.required_roles(transaction_type, gst, tds)
            if accounts.get(role) is None
        ]

    def resolve_for(
        self,
        transaction_type: TransactionType,
        gst: Optional[GSTDetails] = None,
        tds: Optional[TDSDetails] = None,
    ) -> AccountResolution:
        """Resolve accounts and report which required roles are missing."""
        accounts = self.resolve()
        missing = self.validate(accounts, transaction_type, gst, tds)
        return AccountResolution(accounts=accounts, missing_roles=tuple(missing))
