"""Data models for backend rows and device samples."""

from pycourier.models._base import CourierBaseModel, CourierEnum, CourierTimestamp, parse_timestamp
from pycourier.models.driver import Driver
from pycourier.models.location import LocationSample
from pycourier.models.order import Address, DeliveryType, Order, OrderClient, OrderStatus, OrderStore
from pycourier.models.token import AuthToken

__all__ = [
    "Address",
    "AuthToken",
    "CourierBaseModel",
    "CourierEnum",
    "CourierTimestamp",
    "DeliveryType",
    "Driver",
    "LocationSample",
    "Order",
    "OrderClient",
    "OrderStatus",
    "OrderStore",
    "parse_timestamp",
]
