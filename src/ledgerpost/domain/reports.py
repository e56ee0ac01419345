"""Trial balance and account ledger reports."""

from typing import Optional
from datetime import date
from decimal import Decimal
from ledgerpost.database.base import Database
from ledgerpost.domain.aggregator import sum_contributions
from ledgerpost.domain.entities import (
    Account,
    AccountLedger,
    AccountLedgerLine,
    AccountType,
    TrialBalance,
    TrialBalanceLine,
    TrialBalanceSection,
    ZERO,
)
from ledgerpost.domain.errors import NotFoundError, ValidationError, account_not_found

SECTION_ORDER = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
)


def _columns(balance: Decimal) -> tuple[Decimal, Decimal]:
    """Put a debit-minus-credit balance in the debit or the credit column."""
    if balance >= 0:
        return balance, ZERO
    return ZERO, -balance


class ReportService:
    """Read-only views over accounts and their entries."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def _balances_as_of(self, as_of_date: date) -> dict[int, Decimal]:
        totals = sum_contributions(self.db.list_transactions(end_date=as_of_date))
        return {account_id: debit - credit for account_id, (debit, credit) in totals.items()}

    def get_trial_balance(self, as_of_date: Optional[date] = None) -> TrialBalance:
        """Build a trial balance grouped by type.

        Inactive accounts are listed only while they carry a balance.

        Without a date the stored running totals are used. With one, balances
        are recomputed from entries dated on or before it.

        Args:
            as_of_date: Optional cut-off date (inclusive)

        Returns:
            TrialBalance; its warning is set when debits and credits differ
        """
        accounts = self.db.list_accounts(include_inactive=True)
        if as_of_date is not None:
            balances = self._balances_as_of(as_of_date)
        else:
            balances = {account.id: account.balance for account in accounts}
        accounts = [
            account for account in accounts if account.is_active or balances.get(account.id, ZERO)
        ]

        sections = []
        for account_type in SECTION_ORDER:
            lines = []
            for account in accounts:
                if account.account_type is not account_type:
                    continue
                debit, credit = _columns(balances.get(account.id, ZERO))
                lines.append(
                    TrialBalanceLine(
                        account_id=account.id,
                        code=account.code,
                        name=account.name,
                        account_type=account_type,
                        debit=debit,
                        credit=credit,
                    )
                )
            sections.append(
                TrialBalanceSection(
                    account_type=account_type,
                    lines=tuple(lines),
                    total_debit=sum((line.debit for line in lines), ZERO),
                    total_credit=sum((line.credit for line in lines), ZERO),
                )
            )

        return TrialBalance(
            as_of_date=as_of_date,
            sections=tuple(sections),
            total_debit=sum((section.total_debit for section in sections), ZERO),
            total_credit=sum((section.total_credit for section in sections), ZERO),
        )

    def get_account_ledger(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountLedger:
        """List an account's entries with a running debit-minus-credit balance.

        Entries come in (date, transaction ID, entry order). Drafts are left
        out; voided transactions and their reversals are both shown.

        Raises:
            NotFoundError: If account not found
            ValidationError: If start_date is after end_date
        """
        account: Optional[Account] = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if start_date and end_date and start_date > end_date:
            raise ValidationError("Start date must be on or before end date")

        opening = ZERO
        running = ZERO
        lines = []
        for transaction in self.db.list_transactions(end_date=end_date, account_id=account_id):
            if not transaction.affects_balances:
                continue
            for entry in transaction.entries:
                if entry.account_id != account_id:
                    continue
                running += entry.signed_amount
                if start_date is not None and transaction.date < start_date:
                    opening = running
                    continue
                lines.append(
                    AccountLedgerLine(
                        transaction_id=transaction.id,
                        transaction_type=transaction.transaction_type,
                        date=transaction.date,
                        description=transaction.description,
                        memo=entry.memo,
                        debit=entry.debit,
                        credit=entry.credit,
                        running_balance=running,
                    )
                )

        return AccountLedger(
            account=account,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            lines=tuple(lines),
        )
