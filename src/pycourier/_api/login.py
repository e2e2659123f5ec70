"""Auth server endpoints.

Endpoints:
  - POST /auth/v1/token?grant_type=password (sign in)
  - POST /auth/v1/logout (sign out)
"""

from __future__ import annotations

import logging
from typing import Any

from pycourier._api._common import raise_for_response
from pycourier._constants import AUTH_PREFIX
from pycourier._redact import redact_for_log
from pycourier._transport import Transport
from pycourier.config import CourierConfig
from pycourier.exceptions import CourierApiError, CourierAuthenticationError
from pycourier.models.token import AuthToken
from pycourier.session import Session

_logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = f"{AUTH_PREFIX}/token"
LOGOUT_ENDPOINT = f"{AUTH_PREFIX}/logout"


def build_login_request(config: CourierConfig) -> dict[str, str]:
    """Build the JSON body for a password grant.

    Raises
    ------
    CourierAuthenticationError
        If no credentials are configured.
    """
    if not config.email or not config.password:
        raise CourierAuthenticationError(
            "No driver credentials configured (set email and password)",
            endpoint=TOKEN_ENDPOINT,
        )
    return {"email": config.email, "password": config.password}


def parse_login_response(body: Any) -> AuthToken:
    """Parse the password-grant response and extract the auth token.

    Raises
    ------
    CourierAuthenticationError
        If the response is missing token fields.
    """
    _logger.debug("Login response parsed=%s", redact_for_log(body))
    if not isinstance(body, dict):
        raise CourierAuthenticationError("Login response is not an object", endpoint=TOKEN_ENDPOINT)

    access_token = body.get("access_token")
    user = body.get("user")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not access_token or not user_id:
        raise CourierAuthenticationError("Login response missing token fields", endpoint=TOKEN_ENDPOINT)

    expires_in = body.get("expires_in")
    return AuthToken(
        access_token=str(access_token),
        refresh_token=str(body.get("refresh_token") or ""),
        user_id=str(user_id),
        expires_in=float(expires_in) if isinstance(expires_in, (int, float)) and expires_in > 0 else None,
        raw=body,
    )


async def sign_in_with_password(config: CourierConfig, transport: Transport) -> AuthToken:
    """Exchange the configured credentials for an access token."""
    response = await transport.request(
        "POST",
        TOKEN_ENDPOINT,
        params={"grant_type": "password"},
        json_body=build_login_request(config),
    )
    try:
        raise_for_response(response)
    except CourierAuthenticationError:
        raise
    except CourierApiError as exc:
        # The auth server answers bad credentials with 400 invalid_grant.
        raise CourierAuthenticationError(
            f"Login failed: {exc}",
            code=exc.code,
            endpoint=TOKEN_ENDPOINT,
            status_code=exc.status_code,
        ) from exc
    return parse_login_response(response.data)


async def sign_out(transport: Transport, session: Session) -> None:
    """Revoke the session's refresh token on the server."""
    response = await transport.request("POST", LOGOUT_ENDPOINT, headers=session.auth_headers())
    raise_for_response(response)
