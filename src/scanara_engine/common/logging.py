"""Structured JSON logging for Scanara-Engine.

Records passed ``extra={"audit_id": ...}`` (or any of the other context
fields) carry those ids as top-level JSON keys. Secrets such as API keys and
GitHub tokens are masked before a line is written.
"""

import logging
import json
import re
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = ("owner_id", "project_id", "snapshot_id", "audit_id")

_SECRETS = re.compile(
    r"\bsk_[A-Za-z0-9_\-]{8,}"
    r"|\bgh[oprsu]_[A-Za-z0-9]{8,}"
    r"|(?<=x-access-token:)[^@\s]+"
)


def redact(text: str) -> str:
    return _SECRETS.sub("***", text)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(log_entry)


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    root = logging.getLogger("scanara_engine")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    # create_app() may run more than once per process (tests)
    if any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
