"""Fixed-rate repeating timer owned by a single caller."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)


class Ticker:
    """Run an async callback every *period* seconds.

    At most one timer task is alive per ``Ticker``: :meth:`start` on a
    running ticker is a no-op.  Ticks are awaited one at a time; when a
    tick overruns the period, the ticks it overlapped are skipped and the
    schedule stays aligned to the original start time.

    :meth:`stop` may be called from inside the callback.  Exceptions
    raised by the callback are logged and do not stop the ticker.
    """

    def __init__(
        self,
        period: float,
        callback: Callable[[], Awaitable[None]],
        *,
        name: str = "ticker",
    ) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self._period = period
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0
        self._skipped_count = 0

    @property
    def period(self) -> float:
        return self._period

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        """Number of callback invocations since construction."""
        return self._tick_count

    @property
    def skipped_count(self) -> int:
        """Number of ticks dropped because a previous tick overran."""
        return self._skipped_count

    def start(self) -> bool:
        """Arm the timer; the first tick fires one period from now.

        Returns ``False`` (and does nothing) if the ticker is already running.
        """
        if self.is_running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        return True

    def stop(self) -> None:
        """Disarm the timer.  No further ticks fire after this returns."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from our own callback: _run sees the cleared handle and exits.
            return
        task.cancel()

    async def aclose(self) -> None:
        """Stop the timer and wait for its task to finish."""
        task = self._task
        self.stop()
        if task is not None and task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        me = asyncio.current_task()
        next_at = loop.time() + self._period
        while self._task is me:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if self._task is not me:
                return
            self._tick_count += 1
            try:
                await self._callback()
            except Exception:
                _logger.exception("%s callback failed", self._name)
            next_at += self._period
            now = loop.time()
            if next_at <= now:
                missed = int((now - next_at) // self._period) + 1
                next_at += missed * self._period
                self._skipped_count += missed
                _logger.debug("%s tick overran; skipped %d tick(s)", self._name, missed)
