# currency_intel/utils/logging.py
"""
Logging configuration for the Currency Intelligence API.

Provides centralized logging setup with:
- Environment-based log levels (LOG_LEVEL)
- Correlation ID on every record
- JSON format option for log aggregation (LOG_FORMAT=json)
- Suppression of noisy third-party library logs

Usage:
    from currency_intel.utils import setup_logging

    setup_logging()  # once, before creating the FastAPI app

Log Levels used by the services:
    DEBUG   - Per-pair revaluation details, cache hits
    INFO    - Report generated, risk assessment produced
    WARNING - A single account or currency skipped (partial result)
    ERROR   - Rate provider failures
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from currency_intel.config import settings
from currency_intel.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

NOISY_LOGGERS = [
    "yfinance",
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "httpx",
    "httpcore",
    "peewee",
    "asyncio",
]

# LogRecord attributes that are not "extra" fields
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


class CorrelationIdFilter(logging.Filter):
    """Adds the request correlation ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Anything passed through ``extra=`` (account_id, currency, user_id, ...)
    lands under "extra"; values json can't encode are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str)


def _build_handler(format_type: str) -> logging.Handler:
    if format_type.lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    return handler


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.
        suppress_noisy_loggers: Lower yfinance/urllib3/httpx chatter to WARNING.
    """
    level_name = level or settings.log_level
    format_type = log_format or settings.log_format

    root_logger = logging.getLogger()
    root_logger.setLevel(_get_log_level(level_name))
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(format_type))

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}",
        extra={"config": {"level": level_name, "format": format_type}},
    )


def _get_log_level(level_str: str) -> int:
    """
    Map a level name (case-insensitive, WARN accepted) to its number.

    Raises:
        ValueError: If level_str is not a known level
    """
    name = level_str.upper().strip()
    levels = logging.getLevelNamesMapping()
    if name not in levels or name == "NOTSET":
        raise ValueError(f"Invalid log level: '{level_str}'")
    return levels[name]
