"""Session state management for authenticated API calls."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

#: Default access token time-to-live in seconds (1 hour), matching the
#: auth server's default JWT expiry.
DEFAULT_SESSION_TTL: float = 3600.0

#: Refresh this many seconds before the token actually expires so a
#: request never races the expiry.
_EXPIRY_MARGIN: float = 30.0


class Session(BaseModel):
    """Authenticated session after a successful sign-in.

    The session is passed explicitly to every endpoint function; there
    is no process-wide "current user".

    Parameters
    ----------
    user_id : str
        The authenticated user's ID.
    access_token : str
        JWT sent as bearer token.
    refresh_token : str
        Token used to obtain a new access token.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        was created.  Defaults to *now* if not provided.
    ttl : float
        Time-to-live in seconds.  After this period the session is
        considered expired and should be refreshed via a new login.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_id: str
    access_token: str
    refresh_token: str = ""
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_SESSION_TTL

    @property
    def is_expired(self) -> bool:
        """Whether the session has (nearly) exceeded its TTL."""
        margin = min(_EXPIRY_MARGIN, self.ttl / 10)
        return (time.monotonic() - self.created_at) >= (self.ttl - margin)

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}
