"""Driver session guard for the dashboard."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from pycourier.exceptions import CourierError
from pycourier.models.driver import Driver
from pycourier.session import Session

_logger = logging.getLogger(__name__)


class SessionContext(Protocol):
    """Explicit stand-in for the ambient auth session.

    :class:`pycourier.client.CourierClient` implements this protocol.
    """

    def get_session(self) -> Session | None:
        ...

    async def fetch_driver_profile(self) -> Driver | None:
        ...

    async def sign_out(self) -> None:
        ...


class GuardState(StrEnum):
    LOADING = "loading"
    AUTHORIZED = "authorized"
    REDIRECTED = "redirected"


class DriverGuard:
    """Gate the dashboard behind a registered driver profile.

    The guard stays in ``LOADING`` until the profile fetch settles and
    makes no redirect decision before that.  No session, no driver
    record, and a failed fetch all lead to the same outcome: sign out
    and redirect to the login route, exactly once.
    """

    def __init__(
        self,
        context: SessionContext,
        navigate: Callable[[str], None],
        *,
        login_path: str = "/driver-login",
    ) -> None:
        self._context = context
        self._navigate = navigate
        self._login_path = login_path
        self._state = GuardState.LOADING
        self._driver: Driver | None = None
        self._check_task: asyncio.Task[Driver | None] | None = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_loading(self) -> bool:
        """True until the profile fetch settles (render a placeholder)."""
        return self._state is GuardState.LOADING

    @property
    def driver(self) -> Driver | None:
        return self._driver

    async def check(self) -> Driver | None:
        """Run the check once; later calls return the settled result."""
        if self._check_task is None:
            self._check_task = asyncio.get_running_loop().create_task(self._check())
        return await asyncio.shield(self._check_task)

    async def _check(self) -> Driver | None:
        if self._context.get_session() is None:
            _logger.debug("No session; redirecting to %s", self._login_path)
            self._redirect()
            return None

        try:
            driver = await self._context.fetch_driver_profile()
        except CourierError as exc:
            # Treated as "not a driver"; no retry.
            _logger.warning("Driver profile fetch failed: %s", exc)
            driver = None

        if driver is None:
            try:
                await self._context.sign_out()
            except CourierError:
                _logger.debug("Sign-out before redirect failed", exc_info=True)
            self._redirect()
            return None

        self._driver = driver
        self._state = GuardState.AUTHORIZED
        return driver

    def _redirect(self) -> None:
        if self._state is GuardState.REDIRECTED:
            return
        self._state = GuardState.REDIRECTED
        self._navigate(self._login_path)
