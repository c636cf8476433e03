"""Coercion helpers for raw feed scalars."""

from __future__ import annotations

import math
from typing import Any, Optional

_ABSENT_MARKERS = {"", "none", "null"}


def clean_value(raw: Any) -> Optional[str]:
    """Return the trimmed string, or None for blank and "none"/"null" markers."""
    if raw is None:
        return None
    text = str(raw).strip()
    if text.lower() in _ABSENT_MARKERS:
        return None
    return text


def parse_number(raw: Any) -> Optional[float]:
    cleaned = clean_value(raw)
    if cleaned is None:
        return None
    try:
        value = float(cleaned.replace(",", ""))
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_integer(raw: Any) -> Optional[int]:
    """Parse an integer, tolerating decimal input such as "1200.0"."""
    cleaned = clean_value(raw)
    if cleaned is None:
        return None
    cleaned = cleaned.replace(",", "")
    try:
        return int(cleaned)
    except ValueError:
        pass
    try:
        return int(float(cleaned))
    except (ValueError, OverflowError):
        return None
