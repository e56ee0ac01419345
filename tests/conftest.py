"""Shared pytest fixtures for ledgerpost tests."""

import logging
import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from ledgerpost.database.factories import create_sqlite_database
from ledgerpost.domain.account import AccountService
from ledgerpost.domain.aggregator import BalanceAggregator
from ledgerpost.domain.events import TransactionEvents
from ledgerpost.domain.reports import ReportService
from ledgerpost.domain.system_accounts import SystemAccountResolver
from ledgerpost.domain.transaction import TransactionService
from ledgerpost.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_ledgerpost_logger():
    """Undo CLI logging setup so caplog sees records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def resolver(temp_db):
    return SystemAccountResolver(temp_db)


@pytest.fixture
def events():
    return TransactionEvents()


@pytest.fixture
def aggregator(temp_db, events):
    """Balance aggregator subscribed to the shared events."""
    aggregator = BalanceAggregator(temp_db)
    aggregator.attach(events)
    return aggregator


@pytest.fixture
def transaction_service(temp_db, events, aggregator):
    """Create a TransactionService whose writes update balances."""
    return TransactionService(temp_db, events)


@pytest.fixture
def report_service(temp_db):
    return ReportService(temp_db)


@pytest.fixture
def chart(account_service):
    """Seed the standard chart of accounts. Returns name -> account ID."""
    from ledgerpost.cli.commands.init_accounts import INITIAL_ACCOUNTS

    ids = {}
    for code, name, account_type, flags in INITIAL_ACCOUNTS:
        ids[name] = account_service.create_account(
            code=code, name=name, account_type=account_type, **flags
        )
    return ids


@pytest.fixture
def balance_of(temp_db):
    """Return a function reading an account's debit-minus-credit balance."""

    def _balance(account_id: int) -> Decimal:
        return temp_db.get_account(account_id).balance

    return _balance


@pytest.fixture
def invoice_date():
    return date(2024, 4, 15)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
