"""Device location sample model."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocationSample(BaseModel):
    """A single position fix obtained from the device.

    Samples are ephemeral: they are forwarded to the backend as soon as
    they are captured and never stored locally.

    Parameters
    ----------
    latitude : float
        Latitude in degrees (-90..90).
    longitude : float
        Longitude in degrees (-180..180).
    accuracy : float or None
        Reported accuracy radius in metres.
    captured_at : datetime
        When the fix was taken (UTC).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    accuracy: float | None = Field(default=None, ge=0.0)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("captured_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
