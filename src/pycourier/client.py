"""High-level async client for the storefront backend (driver side)."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from pycourier._api import drivers as _drivers_api
from pycourier._api import login as _login_api
from pycourier._api import orders as _orders_api
from pycourier._constants import ORDERS_TABLE
from pycourier._realtime import ChangeEvent, RealtimeChannel
from pycourier._transport import RestTransport, Transport
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierError, CourierSessionExpiredError, NotADriverError
from pycourier.models.driver import Driver
from pycourier.models.order import Order, OrderStatus
from pycourier.session import Session

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class CourierClient:
    """Async client for the driver-facing backend calls.

    Usage::

        async with CourierClient(config) as client:
            await client.login()
            driver = await client.fetch_driver_profile()

    The client also satisfies :class:`pycourier.guard.SessionContext`,
    so it can be handed directly to :class:`pycourier.guard.DriverGuard`.
    """

    def __init__(
        self,
        config: CourierConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CourierClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    @property
    def config(self) -> CourierConfig:
        return self._config

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self) -> Session:
        """Sign in with the configured credentials and store the session."""
        transport = self._require_transport()
        token = await _login_api.sign_in_with_password(self._config, transport)

        if token.expires_in is not None:
            ttl = token.expires_in
        else:
            ttl = self._config.session_ttl if self._config.session_ttl > 0 else float("inf")
        self._session = Session(
            user_id=token.user_id,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            ttl=ttl,
        )
        _logger.debug("Signed in user_id=%s ttl=%.0fs", token.user_id, ttl)
        return self._session

    async def ensure_session(self) -> Session:
        """Return an active session, re-authenticating if expired."""
        if self._session is not None and not self._session.is_expired:
            return self._session
        return await self.login()

    def get_session(self) -> Session | None:
        """Return the current session without signing in, or ``None``."""
        session = self._session
        if session is None or session.is_expired:
            return None
        return session

    def invalidate_session(self) -> None:
        """Force session invalidation (next call will re-authenticate)."""
        self._session = None

    async def sign_out(self) -> None:
        """Revoke the session on the server and forget it locally.

        Local state is cleared even if the server call fails.
        """
        session = self._session
        self._session = None
        if session is None:
            return
        await _login_api.sign_out(self._require_transport(), session)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise CourierError("Client not initialized. Use 'async with CourierClient(...) as client:'")
        return self._transport

    async def _call_with_reauth(self, fn: Callable[[Session, Transport], Awaitable[T]]) -> T:
        """Run an API call, retrying once on session expiry."""
        transport = self._require_transport()
        session = await self.ensure_session()
        try:
            return await fn(session, transport)
        except CourierSessionExpiredError:
            _logger.debug("Session expired; signing in again")
            self.invalidate_session()
            session = await self.ensure_session()
            return await fn(session, transport)

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    async def fetch_driver_profile(self) -> Driver | None:
        """Resolve the current session to a driver record, or ``None``."""
        return await self._call_with_reauth(_drivers_api.fetch_driver_profile)

    async def check_driver_access(self) -> Driver:
        """Confirm the signed-in account is a driver.

        Non-driver accounts are signed out before the error is raised.

        Raises
        ------
        NotADriverError
            If the account has no driver record.
        """
        driver = await self.fetch_driver_profile()
        if driver is not None:
            return driver
        try:
            await self.sign_out()
        except CourierError:
            _logger.debug("Sign-out after denied driver access failed", exc_info=True)
        raise NotADriverError("This account is not a registered driver")

    async def update_driver_location(self, driver_id: str, latitude: float, longitude: float) -> None:
        """Persist a location sample for *driver_id*."""

        async def _call(session: Session, transport: Transport) -> None:
            await _drivers_api.update_driver_location(session, transport, driver_id, latitude, longitude)

        await self._call_with_reauth(_call)

    async def get_drivers(self) -> list[Driver]:
        """Fetch all drivers (logistics view)."""
        return await self._call_with_reauth(_drivers_api.fetch_drivers)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def get_deliveries(self) -> list[Order]:
        """Fetch non-cancelled home-delivery orders, newest first."""
        return await self._call_with_reauth(_orders_api.fetch_deliveries)

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        """Change the status of an order."""

        async def _call(session: Session, transport: Transport) -> None:
            await _orders_api.update_order_status(session, transport, order_id, status)

        await self._call_with_reauth(_call)

    async def mark_delivered(self, order_id: str) -> None:
        """Mark an order as completed."""
        await self.update_order_status(order_id, OrderStatus.COMPLETED)

    def order_changes(self, on_change: Callable[[ChangeEvent], Awaitable[None]]) -> RealtimeChannel:
        """Build a channel that awaits *on_change* for every ``Orders`` row change.

        The channel is not started; use it as an async context manager or
        call :meth:`RealtimeChannel.start`.  It signs in lazily with the
        client credentials, like every other call.
        """
        if self._http_session is None:
            raise CourierError("Realtime needs an HTTP session. Use 'async with CourierClient(...) as client:'")

        async def _access_token() -> str:
            session = await self.ensure_session()
            return session.access_token

        return RealtimeChannel(
            self._config,
            self._http_session,
            table=ORDERS_TABLE,
            on_change=on_change,
            token_provider=_access_token,
        )
