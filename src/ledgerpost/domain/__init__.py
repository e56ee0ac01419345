"""Domain layer for ledgerpost."""

import importlib

# Services load lazily: database.base imports domain.entities, and the
# services import database.base.
_SERVICES = {
    "AccountService": "ledgerpost.domain.account",
    "BalanceAggregator": "ledgerpost.domain.aggregator",
    "ReportService": "ledgerpost.domain.reports",
    "SystemAccountResolver": "ledgerpost.domain.system_accounts",
    "TransactionEvents": "ledgerpost.domain.events",
    "TransactionService": "ledgerpost.domain.transaction",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
