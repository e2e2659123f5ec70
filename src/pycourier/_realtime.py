"""Internal realtime channel for Postgres change events.

Owns:
- building the websocket URL and the channel protocol frames
- normalizing ``postgres_changes`` pushes into :class:`ChangeEvent`
- a reconnecting subscription task with a heartbeat
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import aiohttp

from pycourier._constants import REALTIME_PATH, REALTIME_PROTOCOL_VERSION
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierApiError, CourierTransportError
from pycourier.ticker import Ticker

_logger = logging.getLogger(__name__)

_CHANGE_TYPES = frozenset({"INSERT", "UPDATE", "DELETE"})


@dataclass(frozen=True)
class ChangeEvent:
    """Normalized row change pushed by the realtime server."""

    schema: str
    table: str
    event_type: str
    record: dict[str, Any] = field(default_factory=dict)
    old_record: dict[str, Any] = field(default_factory=dict)


def build_socket_url(config: CourierConfig) -> str:
    base = config.supabase_url
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    query = urlencode({"apikey": config.api_key, "vsn": REALTIME_PROTOCOL_VERSION})
    return f"{base}{REALTIME_PATH}?{query}"


def channel_topic(table: str, schema: str = "public") -> str:
    return f"realtime:{schema}:{table}"


def build_join_message(*, topic: str, schema: str, table: str, access_token: str, ref: str) -> dict[str, Any]:
    """Join frame subscribing to every change on *schema*.*table*."""
    return {
        "topic": topic,
        "event": "phx_join",
        "payload": {
            "config": {
                "broadcast": {"ack": False, "self": False},
                "presence": {"key": ""},
                "postgres_changes": [{"event": "*", "schema": schema, "table": table}],
                "private": False,
            },
            "access_token": access_token,
        },
        "ref": ref,
        "join_ref": ref,
    }


def build_heartbeat_message(ref: str) -> dict[str, Any]:
    return {"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": ref}


def build_leave_message(topic: str, ref: str) -> dict[str, Any]:
    return {"topic": topic, "event": "phx_leave", "payload": {}, "ref": ref}


def parse_change_event(message: dict[str, Any]) -> ChangeEvent | None:
    """Extract a row change from a pushed frame, or ``None`` for other frames.

    Accepts the current ``postgres_changes`` envelope as well as the older
    per-type events (``INSERT``/``UPDATE``/``DELETE``) some servers still send.
    """
    event = message.get("event")
    payload = message.get("payload")
    if not isinstance(payload, dict):
        return None
    if event == "postgres_changes":
        data = payload.get("data")
    elif event in _CHANGE_TYPES:
        data = payload
    else:
        return None
    if not isinstance(data, dict):
        return None

    event_type = str(data.get("type") or data.get("eventType") or event).upper()
    if event_type not in _CHANGE_TYPES:
        return None
    record = data.get("record")
    old_record = data.get("old_record")
    return ChangeEvent(
        schema=str(data.get("schema") or ""),
        table=str(data.get("table") or ""),
        event_type=event_type,
        record=record if isinstance(record, dict) else {},
        old_record=old_record if isinstance(old_record, dict) else {},
    )


class RealtimeChannel:
    """Subscription to row changes on one table.

    The channel runs as a background task: it connects, joins, keeps the
    socket alive with heartbeats and awaits *on_change* for every change.
    A dropped connection or a rejected join is logged and retried after
    ``config.realtime_reconnect_delay`` seconds until :meth:`stop`.

    *token_provider* is awaited on every (re)connect so a refreshed
    access token is used after the session rotates.
    """

    def __init__(
        self,
        config: CourierConfig,
        http_session: aiohttp.ClientSession,
        *,
        table: str,
        on_change: Callable[[ChangeEvent], Awaitable[None]],
        token_provider: Callable[[], Awaitable[str]],
        schema: str = "public",
    ) -> None:
        self._config = config
        self._http = http_session
        self._table = table
        self._schema = schema
        self._topic = channel_topic(table, schema)
        self._on_change = on_change
        self._token_provider = token_provider
        self._task: asyncio.Task[None] | None = None
        self._joined = asyncio.Event()
        self._refs = itertools.count(1)
        self._connect_count = 0

    async def __aenter__(self) -> RealtimeChannel:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_joined(self) -> bool:
        return self._joined.is_set()

    @property
    def connect_count(self) -> int:
        """Number of websocket connections opened so far."""
        return self._connect_count

    def start(self) -> bool:
        """Start the subscription task.  Returns ``False`` if already running."""
        if self.is_running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"realtime-{self._table}")
        return True

    async def wait_joined(self, timeout_seconds: float) -> bool:
        """Wait until the server has accepted the subscription."""
        try:
            await asyncio.wait_for(self._joined.wait(), timeout_seconds)
        except TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _next_ref(self) -> str:
        return str(next(self._refs))

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except (aiohttp.ClientError, TimeoutError, CourierTransportError, CourierApiError) as exc:
                _logger.warning("Realtime channel %s dropped: %s", self._topic, exc)
            finally:
                self._joined.clear()
            await asyncio.sleep(self._config.realtime_reconnect_delay)

    async def _listen(self) -> None:
        access_token = await self._token_provider()
        url = build_socket_url(self._config)
        ws = await self._http.ws_connect(url)
        self._connect_count += 1
        heartbeat = Ticker(
            self._config.realtime_heartbeat,
            lambda: self._send_heartbeat(ws),
            name="realtime-heartbeat",
        )
        try:
            join_ref = self._next_ref()
            await ws.send_json(
                build_join_message(
                    topic=self._topic,
                    schema=self._schema,
                    table=self._table,
                    access_token=access_token,
                    ref=join_ref,
                )
            )
            heartbeat.start()
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    try:
                        message = json.loads(msg.data)
                    except json.JSONDecodeError:
                        _logger.debug("Ignoring non-JSON realtime frame: %.200s", msg.data)
                        continue
                    await self._handle_frame(message, join_ref)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise CourierTransportError(f"Realtime socket error: {msg.data}", endpoint=REALTIME_PATH)
                elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                    break
            _logger.debug("Realtime socket for %s closed by server", self._topic)
        finally:
            await heartbeat.aclose()
            if not ws.closed:
                with contextlib.suppress(aiohttp.ClientError, ConnectionError):
                    await ws.send_json(build_leave_message(self._topic, self._next_ref()))
            await ws.close()

    async def _send_heartbeat(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        await ws.send_json(build_heartbeat_message(self._next_ref()))

    async def _handle_frame(self, message: Any, join_ref: str) -> None:
        if not isinstance(message, dict):
            return
        event = message.get("event")
        topic = message.get("topic")

        if event == "phx_reply":
            if topic != self._topic or message.get("ref") != join_ref:
                return
            payload = message.get("payload") or {}
            status = payload.get("status")
            if status != "ok":
                response = payload.get("response") or {}
                reason = response.get("reason") if isinstance(response, dict) else response
                raise CourierApiError(
                    f"Realtime join for {self._topic} rejected: {reason}",
                    code=str(status or ""),
                    endpoint=REALTIME_PATH,
                )
            self._joined.set()
            _logger.info("Subscribed to changes on %s", self._table)
            return

        if topic == self._topic and event in ("phx_error", "phx_close"):
            raise CourierTransportError(f"Realtime channel {self._topic} closed ({event})", endpoint=REALTIME_PATH)

        change = parse_change_event(message)
        if change is None:
            return
        if change.table and change.table != self._table:
            return
        try:
            await self._on_change(change)
        except Exception:
            _logger.exception("Change handler for %s failed", self._topic)
