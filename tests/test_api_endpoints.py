from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from pycourier._api import drivers as drivers_api
from pycourier._api import login as login_api
from pycourier._api import orders as orders_api
from pycourier._api._common import raise_for_response
from pycourier._transport import RestResponse
from pycourier.config import CourierConfig
from pycourier.exceptions import (
    CourierApiError,
    CourierAuthenticationError,
    CourierSessionExpiredError,
)
from pycourier.models.order import OrderStatus
from pycourier.session import Session


class _StubTransport:
    """Replies with a fixed status/body and records every request."""

    def __init__(self, status: int = 200, data: Any = None) -> None:
        self.status = status
        self.data = data
        self.requests: list[dict[str, Any]] = []

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        self.requests.append(
            {
                "method": method,
                "endpoint": endpoint,
                "params": dict(params or {}),
                "json": json_body,
                "headers": dict(headers or {}),
            }
        )
        return RestResponse(status=self.status, data=self.data, endpoint=endpoint)


def _session() -> Session:
    return Session(user_id="user-1", access_token="jwt-1", ttl=3600)


def _config() -> CourierConfig:
    return CourierConfig(
        supabase_url="https://example.supabase.co/",
        api_key="anon",
        email="driver@example.com",
        password="secret",
    )


# ------------------------------------------------------------------
# Error mapping
# ------------------------------------------------------------------


def test_401_maps_to_session_expired() -> None:
    response = RestResponse(status=401, data={"code": "PGRST301", "message": "JWT expired"}, endpoint="/x")
    with pytest.raises(CourierSessionExpiredError) as exc_info:
        raise_for_response(response)
    assert exc_info.value.code == "PGRST301"


def test_generic_error_keeps_code_and_status() -> None:
    response = RestResponse(status=409, data={"code": "23505", "message": "duplicate"}, endpoint="/x")
    with pytest.raises(CourierApiError) as exc_info:
        raise_for_response(response)
    assert not isinstance(exc_info.value, CourierAuthenticationError)
    assert exc_info.value.code == "23505"
    assert exc_info.value.status_code == 409


# ------------------------------------------------------------------
# Login
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sign_in_parses_token() -> None:
    transport = _StubTransport(
        data={"access_token": "jwt", "refresh_token": "r", "expires_in": 3600, "user": {"id": "user-9"}}
    )
    token = await login_api.sign_in_with_password(_config(), transport)

    assert token.user_id == "user-9"
    assert token.access_token == "jwt"
    assert token.expires_in == 3600.0
    request = transport.requests[0]
    assert request["endpoint"] == "/auth/v1/token"
    assert request["params"] == {"grant_type": "password"}
    assert request["json"] == {"email": "driver@example.com", "password": "secret"}


@pytest.mark.asyncio
async def test_bad_credentials_raise_authentication_error() -> None:
    transport = _StubTransport(status=400, data={"error": "invalid_grant", "error_description": "Invalid login"})
    with pytest.raises(CourierAuthenticationError) as exc_info:
        await login_api.sign_in_with_password(_config(), transport)
    assert exc_info.value.code == "invalid_grant"


def test_login_without_credentials_is_rejected() -> None:
    config = CourierConfig(supabase_url="https://example.supabase.co", api_key="anon")
    with pytest.raises(CourierAuthenticationError):
        login_api.build_login_request(config)


# ------------------------------------------------------------------
# Drivers
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_driver_profile_returns_driver() -> None:
    transport = _StubTransport(data={"id": "drv-1", "name": "Ana", "latitude": "-23.5", "longitude": -46.6})
    driver = await drivers_api.fetch_driver_profile(_session(), transport)

    assert driver is not None
    assert driver.latitude == -23.5
    request = transport.requests[0]
    assert request["method"] == "POST"
    assert request["endpoint"] == "/rest/v1/rpc/get_driver_profile"
    assert request["headers"]["Authorization"] == "Bearer jwt-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("data", [None, [], {}])
async def test_fetch_driver_profile_empty_is_none(data: Any) -> None:
    assert await drivers_api.fetch_driver_profile(_session(), _StubTransport(data=data)) is None


@pytest.mark.asyncio
async def test_fetch_driver_profile_error_is_none() -> None:
    transport = _StubTransport(status=404, data={"code": "PGRST202", "message": "function not found"})
    assert await drivers_api.fetch_driver_profile(_session(), transport) is None


@pytest.mark.asyncio
async def test_fetch_driver_profile_malformed_row_is_none() -> None:
    transport = _StubTransport(data={"id": "drv-1", "last_updated": "yesterday"})
    assert await drivers_api.fetch_driver_profile(_session(), transport) is None


@pytest.mark.asyncio
async def test_fetch_driver_profile_expired_session_raises() -> None:
    transport = _StubTransport(status=401, data={"message": "JWT expired"})
    with pytest.raises(CourierSessionExpiredError):
        await drivers_api.fetch_driver_profile(_session(), transport)


@pytest.mark.asyncio
async def test_update_driver_location_patches_row() -> None:
    transport = _StubTransport(data=[{"id": "drv-1"}])
    await drivers_api.update_driver_location(_session(), transport, "drv-1", -23.5, -46.6)

    request = transport.requests[0]
    assert request["method"] == "PATCH"
    assert request["endpoint"] == "/rest/v1/Drivers"
    assert request["params"] == {"id": "eq.drv-1"}
    assert request["json"]["latitude"] == -23.5
    assert request["json"]["longitude"] == -46.6
    assert "last_updated" in request["json"]
    assert request["headers"]["Prefer"] == "return=representation"


@pytest.mark.asyncio
async def test_update_driver_location_without_matching_row_fails() -> None:
    with pytest.raises(CourierApiError):
        await drivers_api.update_driver_location(_session(), _StubTransport(data=[]), "ghost", 0.0, 0.0)


def test_location_patch_uses_iso_timestamp() -> None:
    stamp = datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
    patch = drivers_api.build_location_patch(1.0, 2.0, now=stamp)
    assert patch == {"latitude": 1.0, "longitude": 2.0, "last_updated": "2026-03-01T08:30:00+00:00"}


# ------------------------------------------------------------------
# Orders
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_deliveries_filters_and_embeds() -> None:
    transport = _StubTransport(
        data=[
            {
                "id": "ord-1",
                "status": "delivering",
                "delivery_type": "delivery",
                "total_price": "59.90",
                "Clients": {"name": "Bia", "phone": "11999990000"},
                "Addresses": {"street": "Rua B", "number": 12, "neighborhood": "Vila", "city": "SP", "state": "SP"},
            }
        ]
    )
    orders = await orders_api.fetch_deliveries(_session(), transport)

    assert orders[0].status is OrderStatus.DELIVERING
    assert orders[0].client is not None and orders[0].client.name == "Bia"
    assert orders[0].address is not None and orders[0].address.number == "12"
    params = transport.requests[0]["params"]
    assert params["delivery_type"] == "eq.delivery"
    assert params["status"] == "neq.cancelled"
    assert params["order"] == "created_at.desc"


@pytest.mark.asyncio
async def test_update_order_status_sends_value() -> None:
    transport = _StubTransport(data=[{"id": "ord-1", "status": "completed"}])
    await orders_api.update_order_status(_session(), transport, "ord-1", OrderStatus.COMPLETED)
    assert transport.requests[0]["json"] == {"status": "completed"}


@pytest.mark.asyncio
async def test_update_order_status_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        await orders_api.update_order_status(_session(), _StubTransport(), "ord-1", OrderStatus.UNKNOWN)
