"""Live location reporting loop for the driver dashboard.

While tracking, the reporter samples the device position every
``report_interval`` seconds and uploads it to the driver's row.

Failure handling differs by source:

* device-level failures (permission denied, no fix, timeout) stop the
  session and produce an error notice, since they need the driver to act;
* upload failures are only logged, and the next tick tries again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

from pycourier import notify as _notices
from pycourier.config import CourierConfig
from pycourier.exceptions import (
    CourierError,
    GeolocationError,
    GeolocationPermissionDeniedError,
    GeolocationTimeoutError,
    GeolocationUnsupportedError,
)
from pycourier.geolocation import GeolocationProvider, PositionOptions, request_position
from pycourier.notify import LoggingNotifier, Notice, Notifier
from pycourier.ticker import Ticker

_logger = logging.getLogger(__name__)


class TrackingState(StrEnum):
    IDLE = "idle"
    TRACKING = "tracking"


class LocationUploader(Protocol):
    async def update_driver_location(self, driver_id: str, latitude: float, longitude: float) -> None:
        ...


def notice_for_geolocation_error(exc: GeolocationError) -> Notice:
    """Map a device-level failure to the notice shown to the driver."""
    if isinstance(exc, GeolocationUnsupportedError):
        return _notices.GEOLOCATION_UNSUPPORTED
    if isinstance(exc, GeolocationPermissionDeniedError):
        return _notices.PERMISSION_DENIED
    if isinstance(exc, GeolocationTimeoutError):
        return _notices.POSITION_TIMEOUT
    return _notices.POSITION_UNAVAILABLE


class LocationReporter:
    """Two-state (idle/tracking) location reporting session.

    Parameters
    ----------
    config : CourierConfig
        Supplies the report interval and position options.
    provider : GeolocationProvider
        Device location API.
    uploader : LocationUploader
        Receives each sample; usually a :class:`pycourier.client.CourierClient`.
    driver_id : str or None
        Driver whose row is updated.  May be set later through
        :attr:`driver_id` once the profile has loaded.
    notifier : Notifier or None
        Receives user-facing notices.  Defaults to :class:`LoggingNotifier`.
    on_reported : callable or None
        Awaited after each accepted upload, typically to re-fetch the
        driver record so the dashboard shows the new timestamp.

    Each session carries a generation number.  :meth:`stop` bumps it, so
    a position or upload still in flight from an earlier session is
    discarded instead of updating state.
    """

    def __init__(
        self,
        config: CourierConfig,
        provider: GeolocationProvider,
        uploader: LocationUploader,
        *,
        driver_id: str | None = None,
        notifier: Notifier | None = None,
        on_reported: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._provider = provider
        self._uploader = uploader
        self._driver_id = driver_id
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._on_reported = on_reported
        self._options = PositionOptions.from_config(config)
        self._ticker = Ticker(config.report_interval, self._tick, name="location-reporter")
        self._state = TrackingState.IDLE
        self._generation = 0
        self._start_lock = asyncio.Lock()
        self._last_reported_at: datetime | None = None
        self._upload_failures = 0

    async def __aenter__(self) -> LocationReporter:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state is TrackingState.TRACKING

    @property
    def driver_id(self) -> str | None:
        return self._driver_id

    @driver_id.setter
    def driver_id(self, value: str | None) -> None:
        self._driver_id = value

    @property
    def last_reported_at(self) -> datetime | None:
        """Capture time of the last sample the backend accepted."""
        return self._last_reported_at

    @property
    def upload_failures(self) -> int:
        """Consecutive failed uploads in the current session."""
        return self._upload_failures

    @property
    def timer_armed(self) -> bool:
        return self._ticker.is_running

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Idle -> tracking.

        Reports once immediately, then arms the repeating timer.  Calling
        this while already tracking does nothing.

        Returns
        -------
        bool
            ``True`` if the reporter is tracking when the call returns.
        """
        async with self._start_lock:
            if self._state is TrackingState.TRACKING:
                return True
            if not self._driver_id:
                self._notifier.notify(_notices.MISSING_DRIVER_ID)
                return False
            if not self._provider.is_supported:
                self._notifier.notify(_notices.GEOLOCATION_UNSUPPORTED)
                return False

            self._generation += 1
            generation = self._generation
            self._upload_failures = 0

            if not await self._report(generation):
                return False
            if generation != self._generation:
                # stop() ran while the first report was in flight.
                return False

            self._ticker.start()
            self._state = TrackingState.TRACKING
            _logger.info(
                "Tracking started for driver %s every %.0fs",
                self._driver_id,
                self._ticker.period,
            )
            self._notifier.notify(_notices.TRACKING_STARTED)
            return True

    def stop(self) -> None:
        """Tracking -> idle.  No further ticks fire after this returns."""
        was_tracking = self._state is TrackingState.TRACKING
        self._halt()
        if was_tracking:
            _logger.info("Tracking stopped for driver %s", self._driver_id)
            self._notifier.notify(_notices.TRACKING_STOPPED)

    async def aclose(self) -> None:
        """Stop tracking and wait for the timer task to exit (teardown)."""
        self._halt()
        await self._ticker.aclose()

    def _halt(self) -> None:
        self._generation += 1
        self._ticker.stop()
        self._state = TrackingState.IDLE

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    async def _tick(self) -> None:
        await self._report(self._generation)

    async def _report(self, generation: int) -> bool:
        """Sample the position and upload it.

        Returns ``False`` when the session must not continue (device
        failure, or the session was superseded while waiting).
        """
        driver_id = self._driver_id
        if not driver_id:
            self._halt()
            self._notifier.notify(_notices.MISSING_DRIVER_ID)
            return False

        try:
            sample = await request_position(self._provider, self._options)
        except GeolocationError as exc:
            if generation != self._generation:
                _logger.debug("Discarding geolocation failure from a finished session: %s", exc)
                return False
            _logger.warning("Geolocation failed (code=%d): %s; stopping tracking", exc.code, exc)
            self._halt()
            self._notifier.notify(notice_for_geolocation_error(exc))
            return False

        if generation != self._generation:
            _logger.debug("Discarding position captured after tracking stopped")
            return False

        try:
            await self._uploader.update_driver_location(driver_id, sample.latitude, sample.longitude)
        except CourierError as exc:
            self._upload_failures += 1
            _logger.warning(
                "Location upload for driver %s failed (%d in a row): %s",
                driver_id,
                self._upload_failures,
                exc,
            )
            _logger.debug("Upload failure details", exc_info=True)
            return True

        if generation != self._generation:
            _logger.debug("Upload finished after tracking stopped; not refreshing")
            return False

        self._upload_failures = 0
        self._last_reported_at = sample.captured_at
        if self._on_reported is not None:
            try:
                await self._on_reported()
            except Exception:
                _logger.debug("Refreshing driver record after upload failed", exc_info=True)
        return True
