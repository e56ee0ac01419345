"""Balance aggregation: keeps account totals in step with posted entries."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    AccountBalanceChange,
    RecalculationReport,
    Transaction,
    TransactionChange,
    ZERO,
)
from ledgerpost.domain.errors import ConcurrentUpdateError
from ledgerpost.domain.events import TransactionEvents

logger = logging.getLogger(__name__)

Totals = dict[int, tuple[Decimal, Decimal]]


def contribution(transaction: Optional[Transaction]) -> Totals:
    """Per-account (debit, credit) a transaction adds to the totals.

    Absent transactions and drafts contribute nothing.
    """
    if transaction is None or not transaction.affects_balances:
        return {}
    totals: dict[int, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for entry in transaction.entries:
        totals[entry.account_id][0] += entry.debit
        totals[entry.account_id][1] += entry.credit
    return {account_id: (debit, credit) for account_id, (debit, credit) in totals.items()}


def balance_delta(change: TransactionChange) -> Totals:
    """Contribution of the new version minus that of the old one.

    Accounts whose totals do not move are left out.
    """
    old = contribution(change.old)
    new = contribution(change.new)
    delta = {}
    for account_id in old.keys() | new.keys():
        old_debit, old_credit = old.get(account_id, (ZERO, ZERO))
        new_debit, new_credit = new.get(account_id, (ZERO, ZERO))
        debit, credit = new_debit - old_debit, new_credit - old_credit
        if debit or credit:
            delta[account_id] = (debit, credit)
    return delta


def sum_contributions(transactions: Iterable[Transaction]) -> Totals:
    totals: dict[int, tuple[Decimal, Decimal]] = {}
    for transaction in transactions:
        for account_id, (debit, credit) in contribution(transaction).items():
            current_debit, current_credit = totals.get(account_id, (ZERO, ZERO))
            totals[account_id] = (current_debit + debit, current_credit + credit)
    return totals


class BalanceAggregator:
    """Applies transaction write events to account totals.

    Every application is one atomic, version-checked write covering all
    affected accounts. A conflicting concurrent write is retried with fresh
    totals up to max_retries times.
    """

    def __init__(self, db: Database, max_retries: int = 3):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.db = db
        self.max_retries = max_retries

    def attach(self, events: TransactionEvents) -> None:
        """Subscribe to transaction write events."""
        events.subscribe(self.handle_change)

    def handle_change(self, change: TransactionChange) -> None:
        """Apply the balance effect of one transaction write.

        Raises:
            ConcurrentUpdateError: If every attempt conflicted
            PersistenceError: If the store rejected the write
        """
        delta = balance_delta(change)
        if not delta:
            logger.debug("Transaction %s does not move any balance", change.transaction_id)
            return

        for attempt in range(1, self.max_retries + 1):
            try:
                self.db.apply_balance_deltas(delta)
            except ConcurrentUpdateError:
                if attempt == self.max_retries:
                    logger.error(
                        "Giving up on balances for transaction %s after %d conflicting attempts",
                        change.transaction_id,
                        attempt,
                        extra={"transaction_id": change.transaction_id},
                    )
                    raise
                logger.warning(
                    "Concurrent balance update for transaction %s, retrying (%d/%d)",
                    change.transaction_id,
                    attempt,
                    self.max_retries,
                )
                continue
            logger.debug(
                "Applied balance delta of transaction %s to %d account(s)",
                change.transaction_id,
                len(delta),
            )
            return

    def recalculate_all_balances(self) -> RecalculationReport:
        """Rebuild every account's totals from the full transaction history.

        Running it twice in a row changes nothing the second time.
        """
        transactions = self.db.list_transactions()
        expected = sum_contributions(transactions)
        accounts = self.db.list_accounts(include_inactive=True)

        changes = []
        totals = {}
        for account in accounts:
            new_debit, new_credit = expected.get(account.id, (ZERO, ZERO))
            totals[account.id] = (new_debit, new_credit)
            if new_debit != account.debit_total or new_credit != account.credit_total:
                changes.append(
                    AccountBalanceChange(
                        account_id=account.id,
                        account_name=account.name,
                        old_debit=account.debit_total,
                        old_credit=account.credit_total,
                        new_debit=new_debit,
                        new_credit=new_credit,
                    )
                )

        if changes:
            self.db.replace_account_totals(
                {change.account_id: totals[change.account_id] for change in changes}
            )
            logger.info("Recalculation corrected %d account(s)", len(changes))
        else:
            logger.info("Recalculation found all %d account balances correct", len(accounts))

        return RecalculationReport(
            accounts_checked=len(accounts),
            transactions_scanned=len(transactions),
            changes=tuple(changes),
        )
