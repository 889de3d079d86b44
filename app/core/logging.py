"""
app/core/logging.py

Purpose: Logging configuration

- JSON lines in production, coloured single lines in development
- Registration context (session, step, field, PIN code) attached to records
- Aadhaar numbers masked before anything is written
"""

import logging
import re
import sys
import json
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict

from app.core.config import settings
from utils.time_utils import utc_from_timestamp

CONTEXT_FIELDS = ("request_id", "session_id", "user_id", "step_number", "field", "pincode")

# Short labels for the development formatter
CONTEXT_LABELS = {"request_id": "req", "session_id": "session", "step_number": "step", "field": "field", "pincode": "pin"}

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"

AADHAAR_IN_TEXT = re.compile(r"(?<![0-9])[0-9]{8}([0-9]{4})(?![0-9])")


def mask_aadhaar(value: str) -> str:
    """Masks every digit of an Aadhaar number except the last four."""
    if not value:
        return value
    visible = value[-4:]
    return "*" * (len(value) - len(visible)) + visible


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class AadhaarMaskingFilter(logging.Filter):
    """
    Rewrites any bare 12-digit number in the rendered message to its
    masked form. Applied on the handler so third-party records are covered.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = AADHAAR_IN_TEXT.sub(lambda m: "********" + m.group(1), message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line for log shippers.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": utc_from_timestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(record_context(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        context = record_context(record)
        if context:
            tags = ", ".join(f"{CONTEXT_LABELS.get(k, k)}={v}" for k, v in context.items())
            line += f" [{tags}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging():
    """
    Installs a single stdout handler on the root logger.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())
    handler.addFilter(AadhaarMaskingFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
    install_context_factory()

    quiet = {
        "httpx": logging.WARNING,
        "aiosqlite": logging.WARNING,
        "uvicorn.access": logging.WARNING,
        "sqlalchemy.engine": logging.INFO if settings.DATABASE_ECHO else logging.WARNING,
    }
    for name, quiet_level in quiet.items():
        logging.getLogger(name).setLevel(quiet_level)

    logger = logging.getLogger("udyam")
    logger.info(f"Logging configured ({settings.ENVIRONMENT}, level {settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the application namespace.

    Args:
        name: Logger name (usually __name__)

    Returns:
        logging.Logger named "udyam.<name>"
    """
    return logging.getLogger(f"udyam.{name}")


_log_context: ContextVar[Dict[str, Any]] = ContextVar("udyam_log_context", default={})
_base_record_factory = logging.getLogRecordFactory()


def _context_record_factory(*args, **kwargs):
    record = _base_record_factory(*args, **kwargs)
    record.__dict__.update(_log_context.get())
    return record


def install_context_factory():
    """Installs the context-aware record factory once per process."""
    global _base_record_factory
    current = logging.getLogRecordFactory()
    if current is not _context_record_factory:
        _base_record_factory = current
        logging.setLogRecordFactory(_context_record_factory)


class LogContext:
    """
    Context manager that stamps registration context onto every record
    created inside it. None values are skipped; nested contexts merge.

    The context lives in a ContextVar, so overlapping requests on the
    event loop each see only their own values.

    Usage:
        with LogContext(session_id="udyam_...", step_number=1):
            logger.info("Processing step")
    """

    def __init__(self, **context):
        self.context = {k: v for k, v in context.items() if v is not None}
        self._token = None

    def __enter__(self):
        install_context_factory()
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
