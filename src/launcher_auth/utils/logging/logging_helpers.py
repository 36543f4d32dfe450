"""Logging helper utilities.

Provides redaction and truncation helpers for request/response logging:
- redact_headers: Hide Authorization header values
- snippet / log_snippet: Truncate response bodies for logs and error messages
- mask_uuid: Shorten profile UUIDs in debug output
- extract_error_metadata: Error type/message pair for structured logs
"""

from __future__ import annotations

__all__ = [
    "REDACTED",
    "extract_error_metadata",
    "log_snippet",
    "mask_uuid",
    "redact_headers",
    "snippet",
]

from collections.abc import Mapping
from typing import Any

from launcher_auth.constants import LOG_SNIPPET_CHARS

REDACTED = "<redacted>"

# Header names whose values must never reach a log (compared lowercase)
_SENSITIVE_HEADERS: frozenset[str] = frozenset({"authorization"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers with credential values replaced by a placeholder.

    Args:
        headers: Request headers.

    Returns:
        New dict safe to log.

    Example:
        >>> redact_headers({"Authorization": "Bearer abc", "Accept": "application/json"})
        {'Authorization': '<redacted>', 'Accept': 'application/json'}
    """
    return {
        name: REDACTED if name.lower() in _SENSITIVE_HEADERS else value for name, value in headers.items()
    }


def snippet(text: str | None, max_length: int = 600) -> str:
    """Truncate text to max_length characters, marking the cut with an ellipsis."""
    value = text or ""
    if len(value) > max_length:
        return f"{value[:max_length]}…"
    return value


def log_snippet(text: str | None) -> str:
    """Truncate a response body for debug log entries."""
    return snippet(text, LOG_SNIPPET_CHARS)


def mask_uuid(uuid: str) -> str:
    """Keep the first 8 and last 6 characters of a UUID for log correlation."""
    if len(uuid) <= 14:
        return uuid
    return f"{uuid[:8]}…{uuid[-6:]}"


def extract_error_metadata(error: BaseException) -> dict[str, Any]:
    """Extract error_type and error_message for structured logging."""
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
