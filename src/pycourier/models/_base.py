"""Base model and enum for backend rows.

Every row model inherits from :class:`CourierBaseModel` which
provides:

* ``populate_by_name`` so rows can be built from column names or
  Python field names alike.
* A ``model_validator(mode="before")`` that strips empty values
  (``None``, ``""``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

Status enums inherit from :class:`CourierEnum` which adds an
``UNKNOWN`` member and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum
import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> datetime | None:
    """Convert a backend timestamp to a timezone-aware UTC datetime.

    Accepts ISO-8601 strings (as returned by PostgREST for
    ``timestamptz`` columns), epoch seconds or milliseconds, and
    datetimes.  Naive values are assumed to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


CourierTimestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces backend timestamps to UTC datetimes."""


class CourierEnum(enum.StrEnum):
    """Base for backend status enums.

    Every subclass **must** define ``UNKNOWN``.  Values the backend
    sends that have no mapped member resolve to ``UNKNOWN`` instead
    of raising ``ValueError``.
    """

    @classmethod
    def _missing_(cls, value: object) -> CourierEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        if hasattr(cls, "UNKNOWN"):
            unknown: CourierEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class CourierBaseModel(BaseModel):
    """Base for backend row models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original row as returned by the backend."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip empty values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = CourierBaseModel._clean_dict(values)
        # Keep an explicitly passed raw= untouched.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
