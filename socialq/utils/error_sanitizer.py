"""
Error message sanitization for HTTP responses.

Keeps stack traces, file paths and internal module names out of error bodies
returned to inbox clients.
"""

from __future__ import annotations

import re

from socialq.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak internals
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.py",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # Tokens and long opaque ids
    r"Bearer [A-Za-z0-9._-]+",
    r"[A-Za-z0-9_-]{32,}",
    # Internal module names
    r"socialq\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    404: "Resource not found.",
    422: "Invalid data format.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Return message if it is a short, plain client error; otherwise a generic one.

    Args:
        message: The original error message
        status_code: HTTP status code (selects the generic fallback)
    """
    generic = GENERIC_MESSAGES.get(status_code, "An error occurred.")
    if not message:
        return generic

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return generic

    if (
        400 <= status_code < 500
        and len(message) < 100
        and not any(c in message for c in ["{", "}", "[", "]", "\n"])
    ):
        return message

    return generic


def get_safe_error_detail(
    error: Exception,
    status_code: int = 500,
    context: str | None = None,
) -> str:
    """
    Log the full error and return a message safe for the client.

    Args:
        error: The exception that occurred
        status_code: HTTP status code
        context: Message to use for server errors, e.g. "Failed to thread messages"
    """
    logger.error("Error (status=%d): %s - %s", status_code, type(error).__name__, str(error))

    if context and status_code >= 500:
        return context
    return sanitize_error_message(str(error), status_code)
