"""
Structured logging for client transaction tooling.

Log lines go to stderr, either as plain text or one JSON object per line.
Verification keys, transaction ids and credentials are masked before
anything is written, so pages and headers can be logged while debugging.
"""

import os
import sys
import json
import logging
import re
from typing import Any, Dict, Optional
from datetime import datetime, timezone

REDACTED = "***REDACTED***"

# Key/value shapes that may carry secrets in free text
SECRET_VALUE_PATTERNS = [
    re.compile(r'(site-verification|verification[_-]?key)["\s:=]+([^"\s,}]+)', re.IGNORECASE),
    re.compile(r'(client-transaction-id|transaction[_-]?id)["\s:=]+([^"\s,}]+)', re.IGNORECASE),
    re.compile(r'(cookie|authorization)["\s:=]+([^"\s,}]+)', re.IGNORECASE),
    re.compile(r'(bearer|token)["\s:=]+([^"\s,}]+)', re.IGNORECASE),
]

# Mapping keys whose values are always masked
SECRET_KEY_FRAGMENTS = ("verification", "transaction", "cookie", "token", "authorization")

# LogRecord attributes that are not user supplied ``extra`` fields
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def redact_text(text: str) -> str:
    """Mask secret values embedded in a string."""
    for pattern in SECRET_VALUE_PATTERNS:
        text = pattern.sub(rf"\1={REDACTED}", text)
    return text


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with secrets masked."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_text(record.getMessage()),
        }

        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}
        if extra:
            entry["context"] = sanitize_log_data(extra)

        if record.exc_info:
            entry["exception"] = redact_text(self.formatException(record.exc_info))
            entry["location"] = f"{record.pathname}:{record.lineno} in {record.funcName}"

        return json.dumps(entry, default=str)


def sanitize_log_data(data: Any) -> Any:
    """
    Mask secrets in a value before it is logged.

    Args:
        data: Mapping, sequence, string or scalar

    Returns:
        Copy with secret mapping values and embedded secrets replaced
    """
    if isinstance(data, dict):
        return {
            key: REDACTED if any(fragment in str(key).lower() for fragment in SECRET_KEY_FRAGMENTS)
            else sanitize_log_data(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_log_data(item) for item in data]
    if isinstance(data, str):
        return redact_text(data)
    return data


def setup_logging(
    log_level: Optional[str] = None,
    json_output: bool = False
) -> None:
    """
    Configure root logging for the CLI and library users.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Falls back to the LOG_LEVEL env var, then INFO
        json_output: Emit JSON lines instead of plain text
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    # stdout carries generated ids only
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        JSONFormatter() if json_output
        else logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for noisy in ("httpx", "httpcore", "curl_cffi"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root_logger.debug(f"Logging configured: level={level_name} json={json_output}")


def get_logger(name: str) -> logging.Logger:
    """Module logger, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name)
