from __future__ import annotations

import asyncio

import pytest

from pycourier.exceptions import CourierTransportError
from pycourier.guard import DriverGuard, GuardState
from pycourier.models.driver import Driver
from pycourier.session import Session


class _Context:
    def __init__(
        self,
        *,
        driver: Driver | None = None,
        has_session: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.release = asyncio.Event()
        self.release.set()
        self.fetch_calls = 0
        self.sign_out_calls = 0
        self._driver = driver
        self._error = error
        self._session = Session(user_id="user-1", access_token="jwt") if has_session else None

    def get_session(self) -> Session | None:
        return self._session

    async def fetch_driver_profile(self) -> Driver | None:
        self.fetch_calls += 1
        await self.release.wait()
        if self._error is not None:
            raise self._error
        return self._driver

    async def sign_out(self) -> None:
        self.sign_out_calls += 1


def _driver() -> Driver:
    return Driver.model_validate({"id": "drv-1", "name": "Ana"})


@pytest.mark.asyncio
async def test_registered_driver_is_authorized() -> None:
    redirects: list[str] = []
    guard = DriverGuard(_Context(driver=_driver()), redirects.append)

    driver = await guard.check()

    assert driver is not None and driver.id == "drv-1"
    assert guard.state is GuardState.AUTHORIZED
    assert redirects == []


@pytest.mark.asyncio
async def test_no_redirect_while_fetch_pending_then_exactly_once() -> None:
    context = _Context(driver=None)
    context.release.clear()
    redirects: list[str] = []
    guard = DriverGuard(context, redirects.append)

    task = asyncio.create_task(guard.check())
    await asyncio.sleep(0.05)
    assert guard.is_loading
    assert redirects == []

    context.release.set()
    assert await task is None
    assert await guard.check() is None
    assert redirects == ["/driver-login"]
    assert guard.state is GuardState.REDIRECTED
    assert context.fetch_calls == 1
    assert context.sign_out_calls == 1


@pytest.mark.asyncio
async def test_concurrent_checks_share_one_fetch() -> None:
    context = _Context(driver=None)
    redirects: list[str] = []
    guard = DriverGuard(context, redirects.append, login_path="/entregador/login")

    await asyncio.gather(guard.check(), guard.check())

    assert context.fetch_calls == 1
    assert redirects == ["/entregador/login"]


@pytest.mark.asyncio
async def test_fetch_failure_is_treated_as_not_a_driver() -> None:
    context = _Context(error=CourierTransportError("offline"))
    redirects: list[str] = []
    guard = DriverGuard(context, redirects.append)

    assert await guard.check() is None
    assert redirects == ["/driver-login"]


@pytest.mark.asyncio
async def test_missing_session_redirects_without_fetch() -> None:
    context = _Context(has_session=False)
    redirects: list[str] = []
    guard = DriverGuard(context, redirects.append)

    assert await guard.check() is None
    assert redirects == ["/driver-login"]
    assert context.fetch_calls == 0
