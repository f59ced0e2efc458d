"""Postal code (CEP) validation shared by the Edge and Orchestrator services.

Both services accept the code from a different place (JSON body vs. query
parameter) but run the same check: the code must be present, then must match
``NNNNN-NNN`` exactly. No whitespace stripping or alternate formats.
"""

from __future__ import annotations

import re

from libs.common.exceptions import (
    INVALID_ZIPCODE_MESSAGE,
    MISSING_ZIPCODE_MESSAGE,
    ValidationError,
    ValidationErrorKind,
)

# ASCII digits only; fullmatch so a trailing newline is rejected
CEP_PATTERN = re.compile(r"[0-9]{5}-[0-9]{3}")


def is_valid_postal_code(value: str) -> bool:
    """Return True if value is shaped like a CEP (``01001-000``)."""
    return CEP_PATTERN.fullmatch(value) is not None


def validate_postal_code(value: str | None) -> str:
    """Validate a raw postal code and return it unchanged.

    Args:
        value: Raw code from the request, None when absent

    Returns:
        The same string, guaranteed to match ``^[0-9]{5}-[0-9]{3}$``

    Raises:
        ValidationError: BAD_REQUEST when empty or missing,
            UNPROCESSABLE when the shape does not match

    Example:
        >>> validate_postal_code("01001-000")
        '01001-000'
    """
    if not value:
        raise ValidationError(MISSING_ZIPCODE_MESSAGE, ValidationErrorKind.BAD_REQUEST)
    if not is_valid_postal_code(value):
        raise ValidationError(INVALID_ZIPCODE_MESSAGE, ValidationErrorKind.UNPROCESSABLE)
    return value
