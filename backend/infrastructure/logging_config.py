"""Logging configuration: JSON lines in production, plain text in development."""

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Optional

# Set per request by the request-id middleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Credentials that may end up in messages: bearer tokens, session cookies,
# identity-provider secret keys and generated passwords
_SENSITIVE_PATTERNS = [
    (re.compile(r"(Bearer\s+)[\w\-.]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(__session=)[^;\s]+"), r"\1[REDACTED]"),
    (re.compile(r"sk_(?:live|test)_[A-Za-z0-9]+"), "[REDACTED_SECRET_KEY]"),
    (re.compile(r'((?:temp_)?password["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
]


def redact(value: str) -> str:
    for pattern, replacement in _SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Scrubs credentials from the message and string arguments of each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {
                k: (redact(v) if isinstance(v, str) else v) for k, v in record.args.items()
            }
        return True


class RequestIdFilter(logging.Filter):
    """Stamps the current request id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with request context fields when present."""

    EXTRA_FIELDS = ("request_id", "method", "path", "status_code", "duration_ms", "user_id")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None and value != "-":
                entry[key] = value

        return json.dumps(entry, default=str)


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """Replace the root handlers with one stdout handler carrying both filters."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    # Filters sit on the handler so records from child loggers pass through them
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
