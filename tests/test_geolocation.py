from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from pycourier.config import CourierConfig
from pycourier.exceptions import (
    GeolocationPermissionDeniedError,
    GeolocationTimeoutError,
    GeolocationUnsupportedError,
)
from pycourier.geolocation import PositionOptions, StaticPositionProvider, request_position
from pycourier.models.location import LocationSample


class _UnsupportedProvider:
    @property
    def is_supported(self) -> bool:
        return False

    async def get_current_position(self, options: PositionOptions) -> LocationSample:
        raise AssertionError("must not be called")


class _HangingProvider:
    """Ignores the timeout option and never answers."""

    @property
    def is_supported(self) -> bool:
        return True

    async def get_current_position(self, options: PositionOptions) -> LocationSample:
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


class _DeniedProvider:
    @property
    def is_supported(self) -> bool:
        return True

    async def get_current_position(self, options: PositionOptions) -> LocationSample:
        raise GeolocationPermissionDeniedError()


def test_options_from_config() -> None:
    config = CourierConfig(
        supabase_url="https://example.supabase.co",
        api_key="anon",
        geolocation_timeout=2.5,
        high_accuracy=False,
    )
    options = PositionOptions.from_config(config)
    assert options == PositionOptions(enable_high_accuracy=False, timeout=2.5, maximum_age=0.0)


def test_options_reject_non_positive_timeout() -> None:
    with pytest.raises(ValidationError):
        PositionOptions(timeout=0)


def test_static_provider_rejects_bad_coordinates() -> None:
    with pytest.raises(ValidationError):
        StaticPositionProvider(95.0, 0.0)


@pytest.mark.asyncio
async def test_static_provider_returns_fix() -> None:
    sample = await request_position(StaticPositionProvider(-23.5, -46.6, accuracy=8.0), PositionOptions())
    assert (sample.latitude, sample.longitude, sample.accuracy) == (-23.5, -46.6, 8.0)


@pytest.mark.asyncio
async def test_unsupported_provider_raises() -> None:
    with pytest.raises(GeolocationUnsupportedError) as exc_info:
        await request_position(_UnsupportedProvider(), PositionOptions())
    assert exc_info.value.code == 0


@pytest.mark.asyncio
async def test_hanging_provider_times_out() -> None:
    with pytest.raises(GeolocationTimeoutError) as exc_info:
        await request_position(_HangingProvider(), PositionOptions(timeout=0.05))
    assert exc_info.value.code == 3


@pytest.mark.asyncio
async def test_device_error_propagates() -> None:
    with pytest.raises(GeolocationPermissionDeniedError) as exc_info:
        await request_position(_DeniedProvider(), PositionOptions())
    assert exc_info.value.code == 1
