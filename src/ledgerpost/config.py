"""Runtime settings read from the environment.

Command line options override these values.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ledgerpost.domain.errors import ConfigurationError

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "text"
DEFAULT_BALANCE_RETRIES = 3


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    db_path: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: str = DEFAULT_LOG_FORMAT
    balance_retries: int = DEFAULT_BALANCE_RETRIES


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from LEDGERPOST_* environment variables.

    Raises:
        ConfigurationError: If LEDGERPOST_BALANCE_RETRIES is not a positive integer
    """
    env = os.environ if environ is None else environ

    retries_raw = env.get("LEDGERPOST_BALANCE_RETRIES", str(DEFAULT_BALANCE_RETRIES))
    try:
        retries = int(retries_raw)
    except ValueError:
        raise ConfigurationError(
            f"LEDGERPOST_BALANCE_RETRIES must be an integer, got '{retries_raw}'"
        ) from None
    if retries < 1:
        raise ConfigurationError("LEDGERPOST_BALANCE_RETRIES must be at least 1")

    return Settings(
        db_path=env.get("LEDGERPOST_DB_PATH") or None,
        log_level=env.get("LEDGERPOST_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        log_format=env.get("LEDGERPOST_LOG_FORMAT", DEFAULT_LOG_FORMAT).lower(),
        balance_retries=retries,
    )
