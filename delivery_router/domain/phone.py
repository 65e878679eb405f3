"""Recipient normalization rules.

Mental model refresher:
- Domain modules hold pure rules with no I/O.
- Only the Indian locale (`+91`) is supported. Anything that does not reduce
  to exactly ten subscriber digits is rejected, never guessed.
"""

from __future__ import annotations

import re

COUNTRY_CODE = "91"
SUBSCRIBER_DIGITS = 10

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str | None) -> str:
    """Strip every non-digit character (including a leading `+`)."""
    if not value:
        return ""
    return _NON_DIGITS.sub("", value)


def normalize_recipient(raw: str | None) -> str | None:
    """Return the canonical `+91XXXXXXXXXX` form, or None when invalid.

    Examples:
    - "9876543210"     -> "+919876543210"
    - "919876543210"   -> "+919876543210"
    - "09876543210"    -> "+919876543210"
    - "12345"          -> None
    """
    cleaned = digits_only(raw)
    if not cleaned:
        return None

    if len(cleaned) == SUBSCRIBER_DIGITS + len(COUNTRY_CODE) and cleaned.startswith(COUNTRY_CODE):
        return f"+{cleaned}"

    if cleaned.startswith("0"):
        cleaned = cleaned[1:]

    if len(cleaned) == SUBSCRIBER_DIGITS:
        return f"+{COUNTRY_CODE}{cleaned}"

    return None
