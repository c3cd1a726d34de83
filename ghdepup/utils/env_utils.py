"""Environment variable utilities for GHDEPUP.

Detects configuration keys that hold secrets so their values never reach
the console or the log file.
"""

from __future__ import annotations

# Keys containing these substrings are considered sensitive and should not be logged
SENSITIVE_KEY_PATTERNS = ("TOKEN", "SECRET", "PASSWORD", "PAT", "CREDENTIAL")

# Keys that match a pattern above but only name where a secret lives
NON_SENSITIVE_KEYS = frozenset({"TOKEN_ENV_VAR"})

REDACTED = "<REDACTED>"


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key contains sensitive data.

    Args:
        key: The configuration key name

    Returns:
        True if the key is considered sensitive
    """
    key_upper = key.upper()
    if key_upper in NON_SENSITIVE_KEYS:
        return False
    return any(pattern in key_upper for pattern in SENSITIVE_KEY_PATTERNS)


def redact(key: str, value: str) -> str:
    """Return value, or a placeholder if key is sensitive."""
    if value and is_sensitive_key(key):
        return REDACTED
    return value


__all__ = [
    "NON_SENSITIVE_KEYS",
    "REDACTED",
    "SENSITIVE_KEY_PATTERNS",
    "is_sensitive_key",
    "redact",
]
