"""Secret masking utilities for logs, trace attributes and error messages.

Credentials such as the weather API key travel in URL query strings. They are
registered once at startup and masked from every log record, every recorded
span attribute and every error description derived from an outbound call.
"""

from __future__ import annotations

import logging
import threading
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTION_MASK = "***"

# Query parameters that always carry credentials
SENSITIVE_QUERY_PARAMS = frozenset({"key", "api_key", "apikey", "token", "access_token"})

_registered_secrets: set[str] = set()
_registry_lock = threading.Lock()


def register_secret(value: str) -> None:
    """Register a literal secret value to be masked everywhere.

    Empty values are ignored so an unset credential never masks every string.
    """
    if not value:
        return
    with _registry_lock:
        _registered_secrets.add(value)


def clear_registered_secrets() -> None:
    """Forget all registered secrets (used by tests)."""
    with _registry_lock:
        _registered_secrets.clear()


def mask_secrets(text: str) -> str:
    """Replace every registered secret in text with the redaction mask."""
    if not text:
        return text
    # Longest first so a secret containing another is fully masked
    for secret in sorted(_registered_secrets, key=len, reverse=True):
        text = text.replace(secret, REDACTION_MASK)
    return text


def redact_url(
    url: Any,
    params: frozenset[str] | set[str] = SENSITIVE_QUERY_PARAMS,
    mask: str = REDACTION_MASK,
) -> str:
    """Return url as a string with sensitive query values replaced by mask.

    Args:
        url: URL string or object with a string form (e.g. httpx.URL)
        params: Query parameter names whose values must be hidden
        mask: Replacement token

    Returns:
        Redacted URL string. Non-sensitive parameters are kept in order.

    Example:
        >>> redact_url("https://api.weatherapi.com/v1/current.json?key=abc&q=Rio")
        'https://api.weatherapi.com/v1/current.json?key=***&q=Rio'
    """
    parts = urlsplit(str(url))
    if not parts.query:
        return mask_secrets(str(url))

    pairs = parse_qsl(parts.query, keep_blank_values=True)
    redacted = [(name, mask if name.lower() in params else value) for name, value in pairs]
    query = urlencode(redacted, safe="*")
    return mask_secrets(urlunsplit(parts._replace(query=query)))


def _mask_value(value: Any) -> Any:
    """Mask secrets in arbitrary values, preserving original types when possible."""
    if isinstance(value, str):
        return mask_secrets(value)
    if isinstance(value, dict):
        return {key: _mask_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_mask_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_mask_value(item) for item in value)
    return value


class SecretMaskingFilter(logging.Filter):
    """Logging filter that masks registered secrets in every record.

    The message is rendered, masked and frozen into ``record.msg`` so that
    formatters never see the raw arguments. Context dicts and exception text
    are masked as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 - matches logging API
        if not _registered_secrets:
            return True

        record.msg = mask_secrets(record.getMessage())
        record.args = None

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = _mask_value(context)

        if record.exc_info and record.exc_info[1] is not None:
            record.exc_text = mask_secrets(logging.Formatter().formatException(record.exc_info))
        return True


__all__ = [
    "REDACTION_MASK",
    "SENSITIVE_QUERY_PARAMS",
    "SecretMaskingFilter",
    "clear_registered_secrets",
    "mask_secrets",
    "redact_url",
    "register_secret",
]
