"""
Secure Logging Module

Redacts access tokens and other credentials before log records reach any
handler.
"""

import logging
import re
from typing import Any, List, Pattern, Tuple

# Patterns for sensitive data that should be redacted
SENSITIVE_PATTERNS: List[Tuple[Pattern, str]] = [
    (
        re.compile(r"(?i)(bearer\s+)([a-zA-Z0-9+/=._-]{8,})"),
        r"\1***REDACTED***",
    ),
    (
        re.compile(
            r'(?i)(access[_-]?token|api[_-]?key|token|secret|password)(["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9+/=._-]{8,})'
        ),
        r"\1\2***REDACTED***",
    ),
    (
        re.compile(r"(?i)([?&](?:key|token|access_token|secret)=)([^&\s]+)"),
        r"\1***REDACTED***",
    ),
    (
        re.compile(r"(?i)(://[^:/\s]+:)([^@\s]+)(@)"),
        r"\1***PASSWORD_REDACTED***\3",
    ),
]


def sanitize_message(message: Any) -> str:
    """
    Sanitize a message by redacting sensitive information.

    Args:
        message: Message to sanitize

    Returns:
        Sanitized message with sensitive data redacted
    """
    if not isinstance(message, str):
        message = str(message)

    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_for_logging(data: Any) -> Any:
    """Recursively sanitize data structures before logging."""
    if isinstance(data, str):
        return sanitize_message(data)
    elif isinstance(data, dict):
        return {key: sanitize_for_logging(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [sanitize_for_logging(item) for item in data]
    elif isinstance(data, tuple):
        return tuple(sanitize_for_logging(item) for item in data)
    else:
        return data


class TokenRedactingFilter(logging.Filter):
    """
    Logging filter that redacts credentials from every record.

    The message is rendered once with its arguments, sanitized, and stored
    back on the record so formatters never see the raw token. Explicitly
    registered secrets are replaced verbatim even when no pattern matches.
    """

    def __init__(self, name: str = ""):
        super().__init__(name)
        self._secrets: List[str] = []

    def add_secret(self, secret: str) -> None:
        """Register a literal value to redact, such as the active token."""
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for secret in self._secrets:
            message = message.replace(secret, "***REDACTED***")
        record.msg = sanitize_message(message)
        record.args = None
        return True
