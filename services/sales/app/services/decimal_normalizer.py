"""Numeric normalization for backend payloads.

The backend emits monetary and quantity fields either as a plain JSON number or as a
tagged decimal wrapper, e.g. ``{"$numberDecimal": "12500.50"}``, depending on the endpoint.
Everything that does arithmetic on such a field routes it through ``normalize`` first.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

DECIMAL_TAG = "$numberDecimal"

# Accepted wrapper keys. The first one is what the backend actually sends.
DECIMAL_TAGS = (DECIMAL_TAG, "highPrecisionDecimal")


def normalize(value: Any) -> float:
    """Return ``value`` as a float.

    Plain numbers pass through unchanged. A tagged wrapper has its string parsed as a
    base-10 decimal. Any other shape (None, strings, booleans, malformed wrappers) yields 0
    so that a bad price never breaks rendering; callers that need strict validation must
    check ``is_numeric`` first.
    """

    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value

    if isinstance(value, dict):
        for tag in DECIMAL_TAGS:
            if tag in value:
                return _parse_decimal(value[tag])

    return 0


def is_numeric(value: Any) -> bool:
    """True when ``value`` is a plain number or a well-formed decimal wrapper."""

    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, dict):
        for tag in DECIMAL_TAGS:
            if tag in value:
                raw = value[tag]
                if not isinstance(raw, str):
                    return False
                try:
                    return Decimal(raw).is_finite()
                except InvalidOperation:
                    return False
    return False


def wrap(value: float | int | Decimal) -> dict[str, str]:
    """Encode a number the way the backend does for high-precision fields."""

    return {DECIMAL_TAG: str(value)}


def _parse_decimal(raw: Any) -> float:
    if not isinstance(raw, str):
        return 0
    try:
        parsed = Decimal(raw.strip())
    except InvalidOperation:
        return 0
    if not parsed.is_finite():
        return 0
    return float(parsed)
