"""Device geolocation abstraction.

The runtime environment owns the actual location hardware; this module
only defines the shape of the call and enforces its bounded wait.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from pycourier.config import CourierConfig
from pycourier.exceptions import GeolocationTimeoutError, GeolocationUnsupportedError
from pycourier.models.location import LocationSample

_logger = logging.getLogger(__name__)


class PositionOptions(BaseModel):
    """Options for a single position request.

    ``timeout`` and ``maximum_age`` are in seconds.
    """

    model_config = ConfigDict(frozen=True)

    enable_high_accuracy: bool = True
    timeout: float = Field(default=5.0, gt=0)
    maximum_age: float = Field(default=0.0, ge=0)

    @classmethod
    def from_config(cls, config: CourierConfig) -> PositionOptions:
        return cls(
            enable_high_accuracy=config.high_accuracy,
            timeout=config.geolocation_timeout,
            maximum_age=config.geolocation_maximum_age,
        )


class GeolocationProvider(Protocol):
    """Device location API.

    ``get_current_position`` raises a :class:`pycourier.exceptions.GeolocationError`
    subclass on device-level failure.
    """

    @property
    def is_supported(self) -> bool:
        ...

    async def get_current_position(self, options: PositionOptions) -> LocationSample:
        ...


class StaticPositionProvider:
    """Provider that always reports the same coordinates.

    Useful for kiosks at a fixed pickup point, the CLI script, and tests.
    """

    def __init__(self, latitude: float, longitude: float, *, accuracy: float | None = None) -> None:
        # Validate eagerly so a bad position fails at construction.
        LocationSample(latitude=latitude, longitude=longitude, accuracy=accuracy)
        self._latitude = latitude
        self._longitude = longitude
        self._accuracy = accuracy

    @property
    def is_supported(self) -> bool:
        return True

    async def get_current_position(self, options: PositionOptions) -> LocationSample:
        return LocationSample(
            latitude=self._latitude,
            longitude=self._longitude,
            accuracy=self._accuracy,
            captured_at=datetime.now(UTC),
        )


async def request_position(provider: GeolocationProvider, options: PositionOptions) -> LocationSample:
    """Request one fresh fix, bounded by ``options.timeout``.

    Raises
    ------
    GeolocationUnsupportedError
        If the provider reports no geolocation support.
    GeolocationTimeoutError
        If no fix arrives in time (including providers that ignore the
        timeout option themselves).
    GeolocationError
        Any other device-level failure raised by the provider.
    """
    if not provider.is_supported:
        raise GeolocationUnsupportedError()
    try:
        sample = await asyncio.wait_for(provider.get_current_position(options), options.timeout)
    except TimeoutError as exc:
        raise GeolocationTimeoutError(f"No position fix within {options.timeout:g}s") from exc
    _logger.debug("Position fix lat=%.6f lng=%.6f acc=%s", sample.latitude, sample.longitude, sample.accuracy)
    return sample
