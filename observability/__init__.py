"""Observability package for client transaction tooling."""

from observability.logging import setup_logging, get_logger, sanitize_log_data, redact_text, JSONFormatter

__all__ = [
    "setup_logging",
    "get_logger",
    "sanitize_log_data",
    "redact_text",
    "JSONFormatter",
]
