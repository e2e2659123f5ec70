"""Delivery list helpers for the driver dashboard and logistics map."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Protocol
from urllib.parse import quote

from pycourier import notify as _notices
from pycourier._constants import DEFAULT_MAP_CENTER, PENDING_DELIVERY_STATUSES
from pycourier._normalize import digits_only
from pycourier._realtime import ChangeEvent
from pycourier.exceptions import CourierError
from pycourier.models.driver import Driver
from pycourier.models.order import Address, Order, OrderStatus
from pycourier.notify import LoggingNotifier, Notifier

_logger = logging.getLogger(__name__)


def pending_deliveries(orders: Iterable[Order]) -> list[Order]:
    """Orders still on the driver's to-do list, in input order."""
    return [order for order in orders if order.status.value in PENDING_DELIVERY_STATUSES]


def completed_deliveries(orders: Iterable[Order]) -> list[Order]:
    return [order for order in orders if order.status is OrderStatus.COMPLETED]


def format_address(address: Address) -> str:
    return f"{address.street}, {address.number} - {address.neighborhood}, {address.city} - {address.state}"


def maps_search_url(address: Address | None) -> str | None:
    """Google Maps search link for the delivery address."""
    if address is None:
        return None
    return f"https://www.google.com/maps/search/?api=1&query={quote(format_address(address), safe='')}"


def whatsapp_url(phone: str | None) -> str | None:
    """Click-to-chat link for the customer's phone number."""
    digits = digits_only(phone)
    if not digits:
        return None
    return f"https://wa.me/{digits}"


def map_center(drivers: Iterable[Driver]) -> tuple[float, float]:
    """Average position of the drivers that have reported one.

    Falls back to :data:`DEFAULT_MAP_CENTER` when none has.
    """
    positioned = [d for d in drivers if d.latitude is not None and d.longitude is not None]
    if not positioned:
        return DEFAULT_MAP_CENTER
    lat = sum(d.latitude for d in positioned if d.latitude is not None) / len(positioned)
    lng = sum(d.longitude for d in positioned if d.longitude is not None) / len(positioned)
    return (lat, lng)


class DeliverySource(Protocol):
    async def get_deliveries(self) -> list[Order]:
        ...


class DeliveryFeed:
    """Keep the driver's delivery list in sync with order changes.

    Pass :meth:`handle_change` to
    :meth:`pycourier.client.CourierClient.order_changes`.  Every change
    triggers a refetch; inserts and updates also produce an info notice.
    A failed refetch is logged and the previous list is kept.
    """

    def __init__(
        self,
        source: DeliverySource,
        *,
        on_update: Callable[[list[Order]], None] | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._source = source
        self._on_update = on_update
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._orders: list[Order] = []

    @property
    def orders(self) -> list[Order]:
        return list(self._orders)

    @property
    def pending(self) -> list[Order]:
        return pending_deliveries(self._orders)

    async def refresh(self) -> list[Order]:
        orders = await self._source.get_deliveries()
        self._orders = orders
        if self._on_update is not None:
            self._on_update(list(orders))
        return orders

    async def handle_change(self, change: ChangeEvent) -> None:
        _logger.debug("Order %s change on %s", change.event_type, change.record.get("id"))
        try:
            await self.refresh()
        except CourierError as exc:
            _logger.warning("Refreshing deliveries after an order change failed: %s", exc)
            return
        if change.event_type in ("INSERT", "UPDATE"):
            self._notifier.notify(_notices.DELIVERIES_UPDATED)
