"""Order models for the delivery list."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pycourier._normalize import safe_float
from pycourier.models._base import CourierBaseModel, CourierEnum, CourierTimestamp


class OrderStatus(CourierEnum):
    """Order lifecycle status as stored in the ``Orders.status`` column."""

    UNKNOWN = "unknown"
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DeliveryType(CourierEnum):
    UNKNOWN = "unknown"
    DELIVERY = "delivery"
    PICKUP = "pickup"


class Address(CourierBaseModel):
    """Delivery address embedded from the ``Addresses`` table."""

    street: str = ""
    number: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    complement: str | None = None

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> str:
        return str(value)


class OrderClient(CourierBaseModel):
    """Customer summary embedded from the ``Clients`` table."""

    name: str = ""
    phone: str | None = None


class OrderStore(CourierBaseModel):
    name: str = ""


class Order(CourierBaseModel):
    """An order row with its embedded client, store and address."""

    id: str
    status: OrderStatus = OrderStatus.UNKNOWN
    delivery_type: DeliveryType = DeliveryType.UNKNOWN
    total_price: float | None = None
    payment_method: str | None = None
    change_for: float | None = None
    """Cash amount the driver must bring change for."""
    created_at: CourierTimestamp = None
    client: OrderClient | None = Field(default=None, validation_alias=AliasChoices("Clients", "client"))
    store: OrderStore | None = Field(default=None, validation_alias=AliasChoices("Stores", "store"))
    address: Address | None = Field(default=None, validation_alias=AliasChoices("Addresses", "address"))

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> str:
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> OrderStatus:
        return OrderStatus(value)

    @field_validator("delivery_type", mode="before")
    @classmethod
    def _coerce_delivery_type(cls, value: Any) -> DeliveryType:
        return DeliveryType(value)

    @field_validator("total_price", "change_for", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def is_cash(self) -> bool:
        return self.payment_method == "cash"
