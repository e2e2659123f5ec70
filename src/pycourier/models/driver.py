"""Driver model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pycourier._normalize import safe_float, safe_str
from pycourier.models._base import CourierBaseModel, CourierTimestamp


class Driver(CourierBaseModel):
    """A delivery driver row from the ``Drivers`` table.

    Position fields are written only by the live-location loop and are
    ``None`` until the driver reports for the first time.
    """

    id: str = Field(validation_alias=AliasChoices("id", "driver_id"))
    name: str = ""
    email: str | None = None
    phone: str | None = None
    latitude: float | None = Field(default=None, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float | None = Field(default=None, validation_alias=AliasChoices("longitude", "lng", "lon"))
    last_updated: CourierTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("last_updated", "lastUpdated", "updated_at"),
    )
    """When the last position was stored (UTC)."""

    @field_validator("id", mode="before")
    @classmethod
    def _id_non_empty(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("driver id must be non-empty")
        return text

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def age_seconds(self, now: datetime) -> float | None:
        """Seconds between the last stored position and *now*."""
        if self.last_updated is None:
            return None
        return (now - self.last_updated).total_seconds()
