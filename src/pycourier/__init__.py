"""pycourier - Async Python client and live-location runtime for delivery drivers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycourier")
except PackageNotFoundError:
    __version__ = "0+local"
from pycourier._realtime import ChangeEvent, RealtimeChannel
from pycourier.client import CourierClient
from pycourier.config import CourierConfig
from pycourier.exceptions import (
    CourierApiError,
    CourierAuthenticationError,
    CourierConfigError,
    CourierError,
    CourierSessionExpiredError,
    CourierTransportError,
    GeolocationError,
    GeolocationPermissionDeniedError,
    GeolocationTimeoutError,
    GeolocationUnavailableError,
    GeolocationUnsupportedError,
    NotADriverError,
)
from pycourier.deliveries import DeliveryFeed
from pycourier.geolocation import GeolocationProvider, PositionOptions, StaticPositionProvider
from pycourier.guard import DriverGuard, GuardState, SessionContext
from pycourier.models import Address, Driver, LocationSample, Order, OrderStatus
from pycourier.notify import LoggingNotifier, Notice, NoticeLevel, Notifier
from pycourier.ticker import Ticker
from pycourier.toggle import Freshness, ToggleAction, ToggleView, TrackingToggle
from pycourier.tracking import LocationReporter, TrackingState

__all__ = [
    "__version__",
    "Address",
    "ChangeEvent",
    "CourierApiError",
    "CourierAuthenticationError",
    "CourierClient",
    "CourierConfig",
    "CourierConfigError",
    "CourierError",
    "CourierSessionExpiredError",
    "CourierTransportError",
    "DeliveryFeed",
    "Driver",
    "DriverGuard",
    "Freshness",
    "GeolocationError",
    "GeolocationPermissionDeniedError",
    "GeolocationProvider",
    "GeolocationTimeoutError",
    "GeolocationUnavailableError",
    "GeolocationUnsupportedError",
    "GuardState",
    "LocationReporter",
    "LocationSample",
    "LoggingNotifier",
    "NotADriverError",
    "Notice",
    "NoticeLevel",
    "Notifier",
    "Order",
    "OrderStatus",
    "PositionOptions",
    "RealtimeChannel",
    "SessionContext",
    "StaticPositionProvider",
    "Ticker",
    "ToggleAction",
    "ToggleView",
    "TrackingState",
    "TrackingToggle",
]
