"""Structured Logging — one JSON line per record for the API and the cleanup job.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Known extra fields (EXTRA_FIELDS) are copied through when set on the record
    - setup_logging is idempotent: calling it twice leaves exactly one handler

Design Decisions:
    - stdlib logging + a small Formatter, no logging framework dependency
    - fmt="text" for local development, anything else means JSON
    - uvicorn.access held at WARNING: file serving would otherwise log every GET
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "error_code", "path", "order_id", "order_item_id", "product_id",
    "rule_id", "constraint_id", "temp_file", "deleted", "failed",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install a single stdout handler on the root logger and return it."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(_TEXT_FORMAT) if fmt == "text" else JSONFormatter(),
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
