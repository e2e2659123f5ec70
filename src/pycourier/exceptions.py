"""Custom exception hierarchy for pycourier."""

from __future__ import annotations


class CourierError(Exception):
    """Base exception for all pycourier errors."""


class CourierConfigError(CourierError):
    """Invalid or missing configuration."""


class CourierTransportError(CourierError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class CourierApiError(CourierError):
    """The backend answered with an error body (PostgREST or auth server)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class CourierAuthenticationError(CourierApiError):
    """Login failed or no authenticated session is available."""


class CourierSessionExpiredError(CourierAuthenticationError):
    """Access token rejected by the server.

    Raised for HTTP 401 responses and the PostgREST ``PGRST301``
    (JWT expired) code.  The client catches this internally to
    trigger automatic re-authentication.
    """


class NotADriverError(CourierAuthenticationError):
    """The authenticated account has no driver record."""


class GeolocationError(CourierError):
    """Device-level geolocation failure.

    ``code`` follows the W3C ``GeolocationPositionError`` numbering:
    ``1`` permission denied, ``2`` position unavailable, ``3`` timeout.
    ``0`` is used when the device has no geolocation support at all.
    """

    code: int = 2

    def __init__(self, message: str = "") -> None:
        super().__init__(message or type(self).__doc__ or "Geolocation failed")


class GeolocationUnsupportedError(GeolocationError):
    """The device does not support geolocation."""

    code = 0


class GeolocationPermissionDeniedError(GeolocationError):
    """The user denied access to the device location."""

    code = 1


class GeolocationUnavailableError(GeolocationError):
    """The device could not determine its position."""

    code = 2


class GeolocationTimeoutError(GeolocationError):
    """No position fix arrived within the configured timeout."""

    code = 3
