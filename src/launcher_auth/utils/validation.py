"""Validation utilities for launcher-auth.

Provides reusable normalization for identifiers and environment values.
"""

from __future__ import annotations

__all__ = [
    "non_blank",
    "normalize_uuid",
    "parse_env_bool",
]

import re
from typing import Any

_CANONICAL_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_COMPACT_UUID = re.compile(r"^[0-9a-f]{32}$")

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "n", "off"})


def normalize_uuid(value: Any) -> str | None:
    """Normalize a profile UUID to canonical lowercase 8-4-4-4-12 form.

    Accepts the dashed form in any case, or the 32-character compact form.

    Args:
        value: Candidate UUID (non-strings are rejected).

    Returns:
        Lowercase dashed UUID, or None if the value is not a UUID.

    Example:
        >>> normalize_uuid("ABCDEF01-2345-6789-ABCD-EF0123456789")
        'abcdef01-2345-6789-abcd-ef0123456789'
    """
    if not isinstance(value, str):
        return None

    candidate = value.strip().lower()
    if _CANONICAL_UUID.match(candidate):
        return candidate

    if _COMPACT_UUID.match(candidate):
        return (
            f"{candidate[:8]}-{candidate[8:12]}-{candidate[12:16]}-"
            f"{candidate[16:20]}-{candidate[20:]}"
        )

    return None


def non_blank(value: Any) -> str | None:
    """Return the trimmed string, or None if not a string or blank."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def parse_env_bool(value: str | None) -> bool | None:
    """Parse a boolean environment value.

    Returns:
        True/False for recognized spellings, None for missing or unrecognized.
    """
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None
