"""HTTP transport for the hosted REST and auth endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pycourier._constants import USER_AGENT
from pycourier._redact import redact_for_log
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RestResponse:
    """Decoded HTTP response.

    ``data`` is ``None`` for empty bodies (e.g. ``204 No Content``).
    """

    status: int
    data: Any
    endpoint: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        ...


class RestTransport:
    """HTTP transport that adds the project API key and decodes JSON bodies.

    Server errors (5xx), network failures and undecodable bodies raise
    :class:`CourierTransportError`.  Client errors (4xx) are returned as
    a :class:`RestResponse` so endpoint modules can map the error body.
    """

    def __init__(self, config: CourierConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        request_headers: dict[str, str] = {
            "apikey": self._config.api_key,
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if json_body is not None:
            request_headers["content-type"] = "application/json"
        if headers:
            request_headers.update(headers)

        url = f"{self._config.supabase_url}{endpoint}"
        body = json.dumps(json_body, separators=(",", ":")) if json_body is not None else None

        _logger.debug(
            "%s %s params=%s body=%s",
            method,
            url,
            dict(params or {}),
            redact_for_log(json_body),
        )

        try:
            async with self._http.request(method, url, params=params, data=body, headers=request_headers) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise CourierTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise CourierTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc

        if status >= 500:
            raise CourierTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if not text.strip():
            return RestResponse(status=status, data=None, endpoint=endpoint)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CourierTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(data, max_string=128))
        return RestResponse(status=status, data=data, endpoint=endpoint)
