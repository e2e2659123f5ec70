from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pycourier._transport import RestResponse
from pycourier.client import CourierClient
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierError, NotADriverError
from pycourier.guard import DriverGuard, GuardState
from pycourier.models.order import OrderStatus


@dataclass
class FakeBackend:
    """In-memory stand-in for the hosted auth + REST endpoints."""

    is_driver: bool = True
    profile: dict[str, Any] | None = None
    expire_once_endpoints: set[str] = field(default_factory=set)
    calls: dict[str, int] = field(default_factory=dict)
    tokens_issued: int = 0
    last_patch: dict[str, Any] = field(default_factory=dict)
    _expired_already: set[str] = field(default_factory=set)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        self.calls[endpoint] = self.calls.get(endpoint, 0) + 1

        if endpoint == "/auth/v1/token":
            self.tokens_issued += 1
            return RestResponse(
                status=200,
                data={
                    "access_token": f"jwt-{self.tokens_issued}",
                    "refresh_token": "refresh",
                    "expires_in": 3600,
                    "user": {"id": "user-1"},
                },
                endpoint=endpoint,
            )
        if endpoint == "/auth/v1/logout":
            return RestResponse(status=204, data=None, endpoint=endpoint)

        if endpoint in self.expire_once_endpoints and endpoint not in self._expired_already:
            self._expired_already.add(endpoint)
            return RestResponse(status=401, data={"code": "PGRST301", "message": "JWT expired"}, endpoint=endpoint)

        if endpoint == "/rest/v1/rpc/get_driver_profile":
            data = (self.profile or {"id": "drv-1", "name": "Ana"}) if self.is_driver else None
            return RestResponse(status=200, data=data, endpoint=endpoint)
        if endpoint == "/rest/v1/Drivers" and method == "PATCH":
            self.last_patch = dict(json_body)
            self.last_patch["_auth"] = (headers or {}).get("Authorization")
            return RestResponse(status=200, data=[{"id": "drv-1", **json_body}], endpoint=endpoint)
        if endpoint == "/rest/v1/Drivers":
            rows = [{"id": "drv-1", "name": "Ana", "latitude": -23.5, "longitude": -46.6}]
            return RestResponse(status=200, data=rows, endpoint=endpoint)
        if endpoint == "/rest/v1/Orders" and method == "PATCH":
            return RestResponse(status=200, data=[{"id": params["id"][3:], **json_body}], endpoint=endpoint)
        if endpoint == "/rest/v1/Orders":
            rows = [
                {"id": "ord-1", "status": "pending", "delivery_type": "delivery"},
                {"id": "ord-2", "status": "completed", "delivery_type": "delivery"},
            ]
            return RestResponse(status=200, data=rows, endpoint=endpoint)
        return RestResponse(status=404, data={"message": "not found"}, endpoint=endpoint)


def _config() -> CourierConfig:
    return CourierConfig(
        supabase_url="https://example.supabase.co",
        api_key="anon",
        email="driver@example.com",
        password="secret",
    )


@pytest.mark.asyncio
async def test_calls_require_context_manager() -> None:
    client = CourierClient(_config())
    with pytest.raises(CourierError):
        await client.login()


@pytest.mark.asyncio
async def test_login_and_fetch_profile() -> None:
    backend = FakeBackend()
    async with CourierClient(_config(), transport=backend) as client:
        session = await client.login()
        driver = await client.fetch_driver_profile()

    assert session.user_id == "user-1"
    assert driver is not None and driver.name == "Ana"


@pytest.mark.asyncio
async def test_calls_sign_in_lazily() -> None:
    backend = FakeBackend()
    async with CourierClient(_config(), transport=backend) as client:
        assert client.get_session() is None
        await client.get_drivers()
        assert client.get_session() is not None
    assert backend.tokens_issued == 1


@pytest.mark.asyncio
async def test_expired_session_reauthenticates_once() -> None:
    backend = FakeBackend(expire_once_endpoints={"/rest/v1/Drivers"})
    async with CourierClient(_config(), transport=backend) as client:
        await client.login()
        await client.update_driver_location("drv-1", -23.5, -46.6)

    assert backend.tokens_issued == 2
    assert backend.calls["/rest/v1/Drivers"] == 2
    assert backend.last_patch["_auth"] == "Bearer jwt-2"


@pytest.mark.asyncio
async def test_check_driver_access_signs_out_non_drivers() -> None:
    backend = FakeBackend(is_driver=False)
    async with CourierClient(_config(), transport=backend) as client:
        await client.login()
        with pytest.raises(NotADriverError):
            await client.check_driver_access()
        assert client.get_session() is None

    assert backend.calls["/auth/v1/logout"] == 1


@pytest.mark.asyncio
async def test_client_drives_guard() -> None:
    backend = FakeBackend()
    redirects: list[str] = []
    async with CourierClient(_config(), transport=backend) as client:
        await client.login()
        guard = DriverGuard(client, redirects.append)
        driver = await guard.check()

    assert driver is not None and driver.id == "drv-1"
    assert guard.state is GuardState.AUTHORIZED
    assert redirects == []


@pytest.mark.asyncio
async def test_deliveries_and_mark_delivered() -> None:
    backend = FakeBackend()
    async with CourierClient(_config(), transport=backend) as client:
        orders = await client.get_deliveries()
        await client.mark_delivered("ord-1")

    assert [o.status for o in orders] == [OrderStatus.PENDING, OrderStatus.COMPLETED]
    assert backend.calls["/rest/v1/Orders"] == 2


@pytest.mark.asyncio
async def test_guard_redirects_on_malformed_profile() -> None:
    backend = FakeBackend(profile={"id": "drv-1", "last_updated": "yesterday"})
    redirects: list[str] = []
    async with CourierClient(_config(), transport=backend) as client:
        await client.login()
        guard = DriverGuard(client, redirects.append)
        driver = await guard.check()

    assert driver is None
    assert guard.state is GuardState.REDIRECTED
    assert redirects == ["/driver-login"]
    assert backend.calls["/auth/v1/logout"] == 1
