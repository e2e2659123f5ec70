"""Client configuration for pycourier."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pycourier.exceptions import CourierConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class CourierConfig:
    """Client configuration.

    Parameters
    ----------
    supabase_url : str
        Base URL of the hosted project (e.g. ``"https://xyz.supabase.co"``).
    api_key : str
        Public (anon) API key sent as the ``apikey`` header.
    email : str
        Driver account email.
    password : str
        Driver account password.
    report_interval : float
        Seconds between location reports while tracking.
    geolocation_timeout : float
        Maximum seconds to wait for a single position fix.
    geolocation_maximum_age : float
        Maximum age in seconds of a cached fix the device may return.
        ``0`` forces a fresh fix.
    high_accuracy : bool
        Request a high-accuracy fix from the device.
    fresh_threshold : float
        A last report younger than this many seconds is shown as fresh.
    session_ttl : float
        Access token time-to-live in seconds, used when the auth
        server does not return ``expires_in``.  ``0`` disables expiry.
    login_path : str
        Route the session guard redirects to.
    realtime_heartbeat : float
        Seconds between keep-alive frames on the order change channel.
    realtime_reconnect_delay : float
        Seconds to wait before reconnecting a dropped change channel.
    """

    supabase_url: str
    api_key: str
    email: str = ""
    password: str = ""
    report_interval: float = 15.0
    geolocation_timeout: float = 5.0
    geolocation_maximum_age: float = 0.0
    high_accuracy: bool = True
    fresh_threshold: float = 30.0
    session_ttl: float = 3600.0
    login_path: str = "/driver-login"
    realtime_heartbeat: float = 25.0
    realtime_reconnect_delay: float = 5.0

    def __post_init__(self) -> None:
        if not self.supabase_url:
            raise CourierConfigError("supabase_url must be set")
        if self.report_interval <= 0:
            raise CourierConfigError(f"report_interval must be positive, got {self.report_interval}")
        if self.geolocation_timeout <= 0:
            raise CourierConfigError(f"geolocation_timeout must be positive, got {self.geolocation_timeout}")
        if self.geolocation_maximum_age < 0:
            raise CourierConfigError("geolocation_maximum_age must not be negative")
        if self.fresh_threshold < 0:
            raise CourierConfigError(f"fresh_threshold must not be negative, got {self.fresh_threshold}")
        if self.session_ttl < 0:
            raise CourierConfigError(f"session_ttl must not be negative, got {self.session_ttl}")
        if self.realtime_heartbeat <= 0:
            raise CourierConfigError(f"realtime_heartbeat must be positive, got {self.realtime_heartbeat}")
        if self.realtime_reconnect_delay < 0:
            raise CourierConfigError("realtime_reconnect_delay must not be negative")
        # Normalise once so endpoint modules can append paths blindly.
        object.__setattr__(self, "supabase_url", self.supabase_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> CourierConfig:
        """Create configuration from environment variables.

        Reads ``COURIER_SUPABASE_URL``, ``COURIER_API_KEY``,
        ``COURIER_EMAIL``, ``COURIER_PASSWORD`` and the optional
        ``COURIER_*`` tuning variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        CourierConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "COURIER_SUPABASE_URL": "supabase_url",
            "COURIER_API_KEY": "api_key",
            "COURIER_EMAIL": "email",
            "COURIER_PASSWORD": "password",
            "COURIER_LOGIN_PATH": "login_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "COURIER_REPORT_INTERVAL": "report_interval",
            "COURIER_GEOLOCATION_TIMEOUT": "geolocation_timeout",
            "COURIER_GEOLOCATION_MAXIMUM_AGE": "geolocation_maximum_age",
            "COURIER_FRESH_THRESHOLD": "fresh_threshold",
            "COURIER_SESSION_TTL": "session_ttl",
            "COURIER_REALTIME_HEARTBEAT": "realtime_heartbeat",
            "COURIER_REALTIME_RECONNECT_DELAY": "realtime_reconnect_delay",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise CourierConfigError(f"{env_key} must be a number, got {val!r}") from exc

        if "high_accuracy" not in overrides:
            config_kwargs["high_accuracy"] = _env_bool(env.get("COURIER_HIGH_ACCURACY"), True)

        config_kwargs.update(overrides)

        for required in ("supabase_url", "api_key"):
            if not config_kwargs.get(required):
                raise CourierConfigError(f"Missing required setting: {required}")

        return cls(**config_kwargs)
