"""Order endpoints used by the driver's delivery list.

Endpoints:
  - GET   /rest/v1/Orders (deliveries with embedded client/store/address)
  - PATCH /rest/v1/Orders?id=eq.<id> (status change)
"""

from __future__ import annotations

from pycourier._api._common import rest_call
from pycourier._constants import ORDERS_TABLE, REST_PREFIX
from pycourier._transport import Transport
from pycourier.exceptions import CourierApiError, CourierTransportError
from pycourier.models.order import DeliveryType, Order, OrderStatus
from pycourier.session import Session

ORDERS_ENDPOINT = f"{REST_PREFIX}/{ORDERS_TABLE}"

DELIVERY_SELECT = "*,Clients(name,phone),Stores(name),Addresses(*)"


async def fetch_deliveries(session: Session, transport: Transport) -> list[Order]:
    """Fetch home-delivery orders that were not cancelled, newest first."""
    data = await rest_call(
        method="GET",
        endpoint=ORDERS_ENDPOINT,
        session=session,
        transport=transport,
        params={
            "select": DELIVERY_SELECT,
            "delivery_type": f"eq.{DeliveryType.DELIVERY.value}",
            "status": f"neq.{OrderStatus.CANCELLED.value}",
            "order": "created_at.desc",
        },
    )
    if not isinstance(data, list):
        raise CourierTransportError(f"Expected a list from {ORDERS_ENDPOINT}", endpoint=ORDERS_ENDPOINT)
    return [Order.model_validate(item) for item in data if isinstance(item, dict)]


async def update_order_status(
    session: Session,
    transport: Transport,
    order_id: str,
    status: OrderStatus,
) -> None:
    """Set the status column of a single order."""
    if status is OrderStatus.UNKNOWN:
        raise ValueError("Cannot set an order to UNKNOWN status")
    data = await rest_call(
        method="PATCH",
        endpoint=ORDERS_ENDPOINT,
        session=session,
        transport=transport,
        params={"id": f"eq.{order_id}"},
        json_body={"status": status.value},
        prefer="return=representation",
    )
    if isinstance(data, list) and not data:
        raise CourierApiError(
            f"No order updated for id={order_id}",
            code="no_rows",
            endpoint=ORDERS_ENDPOINT,
        )
