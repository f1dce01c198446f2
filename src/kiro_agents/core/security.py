"""Masking helpers used before values reach logs.

Activation contexts are caller-supplied and may carry host session tokens or
credentials. The logging processor chain runs every event through these
helpers, so nothing in a context dict is written out verbatim.
"""

import re
from typing import Any

REDACTED = "<REDACTED>"

# Substrings of context keys whose values are dropped entirely
_SENSITIVE_KEY = re.compile(
    r"password|api[-_]?key|secret|token|credential|authorization|bearer|private",
    re.IGNORECASE,
)

# Leading markers of credential-shaped strings
_SECRET_VALUE = re.compile(r"^(sk-|pk-|api-|bearer |token |secret_|ghp_)", re.IGNORECASE)

_SHORT_SECRET_SLACK = 4


def mask_secret(secret: str, visible_chars: int = 4) -> str:
    """Hide all but the tail of ``secret``.

    A dash-delimited prefix within the first six characters is kept so the
    kind of credential stays recognizable.

    Example:
        >>> mask_secret("sk-1234567890abcdef")
        'sk-...cdef'
    """
    if not secret:
        return "<empty>"
    if len(secret) <= visible_chars + _SHORT_SECRET_SLACK:
        return "*" * len(secret)

    tail = secret[-visible_chars:]
    dash = secret.find("-", 0, 6)
    head = secret[: dash + 1] if dash >= 0 else ""
    return f"{head}...{tail}"


def is_sensitive_field(field_name: str) -> bool:
    return bool(field_name) and _SENSITIVE_KEY.search(field_name) is not None


def is_sensitive_value(value: Any) -> bool:
    """True for strings shaped like API keys or bearer tokens."""
    return isinstance(value, str) and _SECRET_VALUE.match(value) is not None


def _scrub(key: str, value: Any) -> Any:
    if is_sensitive_field(key):
        return REDACTED
    if is_sensitive_value(value):
        return mask_secret(value)
    if isinstance(value, dict):
        return sanitize_for_logging(value)
    return value


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Return a masked copy of ``data``; nested dicts are scrubbed too."""
    return {key: _scrub(str(key), value) for key, value in data.items()}
