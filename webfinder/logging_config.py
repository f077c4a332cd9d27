"""Structured logging configuration.

Emits one JSON object per record with ``timestamp``, ``level``, ``logger``,
``message`` and ``request_id``. Search context is attached through ``extra``
(strategy, company, score, duration_ms) and transport failures add
target_url, proxy_used and error_reason.

API keys, tokens and passwords are redacted from messages.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from webfinder.middleware.request_id import RequestIdFilter

_SENSITIVE_PATTERNS = re.compile(
    r"(api.key|secret|password|token|authorization)[\s]*[=:]\s*\S+",
    re.IGNORECASE,
)

_CONTEXT_FIELDS: tuple[str, ...] = (
    "strategy",
    "company",
    "score",
    "duration_ms",
    "target_url",
    "proxy_used",
)

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON with structured search context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if hasattr(record, "error_reason"):
            entry["error_reason"] = sanitize(str(getattr(record, "error_reason")))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = sanitize(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


def sanitize(text: str) -> str:
    """Remove sensitive values from log text."""
    return _SENSITIVE_PATTERNS.sub("[REDACTED]", text)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    json_format:
        Emit JSON lines; otherwise a plain human-readable format.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)
