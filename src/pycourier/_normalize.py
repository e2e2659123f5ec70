"""Normalization helpers.

Centralizes parsing of loosely typed backend values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def digits_only(value: Any) -> str:
    """Return the decimal digits of *value* (phone numbers, documents)."""
    text = safe_str(value) or ""
    return "".join(ch for ch in text if ch.isdigit())
