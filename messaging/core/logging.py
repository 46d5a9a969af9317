"""
Structured JSON logging configuration.

Context travels on records as ``extra={"extra_data": {...}}``. Message bodies
and gateway credentials never reach the log output; those keys are masked by
both formatters.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict

from messaging.core.config import get_settings

ROOT_LOGGER = "messaging"

REDACTED = "[redacted]"
SENSITIVE_FIELDS = frozenset({"content", "identity_secret", "signature"})


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the record's extra_data with sensitive values masked."""
    extra_data = getattr(record, "extra_data", None)
    if not isinstance(extra_data, dict):
        return {}
    return {
        key: REDACTED if key in SENSITIVE_FIELDS else value
        for key, value in extra_data.items()
    }


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        log_data.update(record_context(record))

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)

        # Add extra fields as a trailing key=value block
        context = record_context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} [{pairs}]"
        return line


def setup_logging() -> logging.Logger:
    """Configure and return the service's root logger."""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    # Set formatter based on config
    if settings.log_format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
