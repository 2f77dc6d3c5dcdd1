"""Logging Hardening and Redaction.

This module provides filters to prevent credentials (plaintext API keys and
stored envelopes) from appearing in application logs.
"""
import logging
import re
from typing import Any

# Envelope text first so a sealed credential is removed as a whole.
SECRET_PATTERNS = [
    (re.compile(r'v1:[A-Za-z0-9+/]{16}:[A-Za-z0-9+/=]{20,}'), '[REDACTED_ENVELOPE]'),
    (re.compile(r'sk-[A-Za-z0-9_\-]{8,}'), '[REDACTED_KEY]'),
    (re.compile(r'(Bearer\s+)[A-Za-z0-9._\-]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'("(?:api_key|apiKey|encryption_key|ENCRYPTION_KEY)"\s*:\s*")[^"]*(")'), r'\1[REDACTED]\2'),
    (re.compile(r'((?:api_key|apiKey|ENCRYPTION_KEY)=)\S+'), r'\1[REDACTED]'),
]


def redact_text(text: str, *secrets: str) -> str:
    """Redact credential-like patterns, plus any explicitly named secrets."""
    result = text
    for secret in secrets:
        if not secret:
            continue
        # Error messages may quote the secret as a str or bytes repr
        for form in (secret, repr(secret)[1:-1], repr(secret.encode("utf-8", "replace"))[2:-1]):
            result = result.replace(form, "[REDACTED]")
    for pattern, replacement in SECRET_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _redact_arg(arg: Any) -> Any:
    if isinstance(arg, str):
        return redact_text(arg)
    return arg


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_text(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: _redact_arg(v) for k, v in record.args.items()}
        elif record.args:
            record.args = tuple(_redact_arg(arg) for arg in record.args)

        return True


def setup_logging_redaction() -> None:
    """Apply the SecretRedactionFilter to the root logger and all known loggers."""
    redact_filter = SecretRedactionFilter()

    root_logger = logging.getLogger()
    for f in root_logger.filters[:]:
        if isinstance(f, SecretRedactionFilter):
            root_logger.removeFilter(f)
    root_logger.addFilter(redact_filter)
    for handler in root_logger.handlers:
        if not any(isinstance(f, SecretRedactionFilter) for f in handler.filters):
            handler.addFilter(redact_filter)

    # Filters on the root logger do not run for records created on child loggers
    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        for f in logger.filters[:]:
            if isinstance(f, SecretRedactionFilter):
                logger.removeFilter(f)
        logger.addFilter(redact_filter)

    logging.info("Logging redaction filters active.")
