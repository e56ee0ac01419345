"""Database factory functions for creating database instances."""

from pathlib import Path
from typing import Optional

from ledgerpost.config import load_settings
from ledgerpost.database.sqlalchemy_db import SQLAlchemyDatabase

DEFAULT_DATA_DIR = Path.home() / ".ledgerpost"


def default_database_path() -> Path:
    """Books file used when neither an option nor LEDGERPOST_DB_PATH names one."""
    DEFAULT_DATA_DIR.mkdir(exist_ok=True)
    return DEFAULT_DATA_DIR / "ledgerpost.db"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    The path is taken from the argument, then LEDGERPOST_DB_PATH, then
    ~/.ledgerpost/ledgerpost.db.
    """
    path = database_path or load_settings().db_path or str(default_database_path())
    return SQLAlchemyDatabase(f"sqlite:///{path}")
