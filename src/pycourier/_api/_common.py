"""Shared helpers for endpoint modules.

This module centralizes the most repeated patterns:
- building the bearer-auth headers for a session
- mapping PostgREST / auth server error bodies to exceptions
- issuing an authenticated REST call and returning its JSON

It is internal to pycourier and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pycourier._constants import SESSION_EXPIRED_CODES
from pycourier._transport import RestResponse, Transport
from pycourier.exceptions import (
    CourierApiError,
    CourierAuthenticationError,
    CourierSessionExpiredError,
)
from pycourier.session import Session


def _error_fields(data: Any) -> tuple[str, str]:
    """Extract ``(code, message)`` from PostgREST or auth server error bodies."""
    if not isinstance(data, dict):
        return "", str(data or "")
    code = data.get("code") or data.get("error_code") or data.get("error") or ""
    message = (
        data.get("message")
        or data.get("msg")
        or data.get("error_description")
        or data.get("details")
        or ""
    )
    return str(code), str(message)


def raise_for_response(response: RestResponse) -> None:
    """Raise the matching :class:`CourierApiError` for a non-2xx response."""
    if response.ok:
        return
    code, message = _error_fields(response.data)
    endpoint = response.endpoint
    text = f"{endpoint} failed: status={response.status} code={code} message={message}"
    if response.status == 401 or code in SESSION_EXPIRED_CODES:
        raise CourierSessionExpiredError(text, code=code, endpoint=endpoint, status_code=response.status)
    if response.status == 403:
        raise CourierAuthenticationError(text, code=code, endpoint=endpoint, status_code=response.status)
    raise CourierApiError(text, code=code, endpoint=endpoint, status_code=response.status)


async def rest_call(
    *,
    method: str,
    endpoint: str,
    session: Session,
    transport: Transport,
    params: Mapping[str, str] | None = None,
    json_body: Any = None,
    prefer: str | None = None,
) -> Any:
    """Issue an authenticated REST call and return the decoded body.

    This is a thin helper for endpoint modules; it intentionally returns `Any`
    since PostgREST may return objects, lists, scalars or nothing.
    """
    headers = session.auth_headers()
    if prefer:
        headers["Prefer"] = prefer
    response = await transport.request(
        method,
        endpoint,
        params=params,
        json_body=json_body,
        headers=headers,
    )
    raise_for_response(response)
    return response.data
