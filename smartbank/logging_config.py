"""
Structured Logging Configuration Module

Ledger, cipher and settings operations log through the "smartbank" logger
tree. Records carry optional action, resource and details fields which the
JSON formatter emits alongside the message.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"

STRUCTURED_FIELDS = ("action", "resource", "details")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, structured fields only when set"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry["extra" if field == "details" else field] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", log_format: str = "json",
                  logger_name: str = "smartbank") -> logging.Logger:
    """
    Attach a single stderr handler to the package logger.

    Calling it again replaces the previous handler, so the CLI can reconfigure
    the level per invocation.
    """
    logger = logging.getLogger(logger_name)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if log_format.lower() == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    else:
        handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "smartbank") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a ledger or settings event with structured fields.

    Args:
        logger: Logger instance
        level: Level name (info, warning, error)
        message: Log message
        action: Operation name, e.g. "deposit"
        resource: Account id or setting key acted upon
        extra: Additional key/value details, emitted as "extra" in JSON
    """
    fields = {"action": action, "resource": resource, "details": extra or None}
    logger.log(
        getattr(logging, level.upper()), message,
        extra={key: value for key, value in fields.items() if value is not None},
        stacklevel=2
    )
