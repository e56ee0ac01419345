"""Explicit write events between the transaction store and its subscribers."""

import logging
from typing import Callable

from ledgerpost.domain.entities import TransactionChange

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[TransactionChange], None]


class TransactionEvents:
    """Delivers each committed transaction write to every subscriber in order.

    Publishing happens after the write has committed. A handler that raises
    does not undo the write and does not stop later handlers; the change is
    kept in failed_changes so balances can be reconciled afterwards.
    """

    def __init__(self):
        self._handlers: list[ChangeHandler] = []
        self.failed_changes: list[TransactionChange] = []

    def subscribe(self, handler: ChangeHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, change: TransactionChange) -> bool:
        """Deliver a change. Returns False if any handler failed."""
        delivered = True
        for handler in list(self._handlers):
            try:
                handler(change)
            except Exception:
                logger.exception(
                    "Handler %r failed for transaction %s; balances need recalculation",
                    handler,
                    change.transaction_id,
                    extra={"transaction_id": change.transaction_id},
                )
                self.failed_changes.append(change)
                delivered = False
        return delivered
