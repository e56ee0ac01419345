"""Logging configuration for ledgerpost.

Library modules log through ``logging.getLogger(__name__)``; only the CLI
entry point installs a handler.
"""

import json
import logging
from datetime import datetime, timezone

LOGGER_NAME = "ledgerpost"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FORMATS = ("text", "json")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "transaction_id": getattr(record, "transaction_id", None),
            "account_id": getattr(record, "account_id", None),
        }
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "WARNING", fmt: str = "text") -> logging.Logger:
    """Configure the ledgerpost logger with a single stderr handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "text" or "json"

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level or format is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format '{fmt}'. Supported formats: {', '.join(LOG_FORMATS)}")

    logger = logging.getLogger(LOGGER_NAME)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False

    return logger
