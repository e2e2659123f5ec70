"""Authentication token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class AuthToken(BaseModel):
    """Token returned by the auth server after a password grant.

    Parameters
    ----------
    access_token : str
        JWT sent as ``Authorization: Bearer`` on every call.
    refresh_token : str
        Token for obtaining a new access token.
    user_id : str
        The authenticated user's ID.
    expires_in : float or None
        Access token lifetime in seconds, when reported.
    raw : dict
        Full decoded token dict for access to additional fields.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str = ""
    user_id: str
    expires_in: float | None = None
    raw: dict[str, Any]
