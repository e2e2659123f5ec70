from __future__ import annotations

import pytest

from pycourier.config import CourierConfig
from pycourier.exceptions import CourierConfigError


@pytest.fixture
def courier_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in (
        "COURIER_SUPABASE_URL",
        "COURIER_API_KEY",
        "COURIER_EMAIL",
        "COURIER_PASSWORD",
        "COURIER_LOGIN_PATH",
        "COURIER_REPORT_INTERVAL",
        "COURIER_GEOLOCATION_TIMEOUT",
        "COURIER_GEOLOCATION_MAXIMUM_AGE",
        "COURIER_FRESH_THRESHOLD",
        "COURIER_SESSION_TTL",
        "COURIER_HIGH_ACCURACY",
        "COURIER_REALTIME_HEARTBEAT",
        "COURIER_REALTIME_RECONNECT_DELAY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("COURIER_SUPABASE_URL", "https://example.supabase.co/")
    monkeypatch.setenv("COURIER_API_KEY", "anon")
    return monkeypatch


def test_from_env_reads_values(courier_env: pytest.MonkeyPatch) -> None:
    courier_env.setenv("COURIER_EMAIL", "driver@example.com")
    courier_env.setenv("COURIER_REPORT_INTERVAL", "20")
    courier_env.setenv("COURIER_HIGH_ACCURACY", "off")

    config = CourierConfig.from_env()

    assert config.supabase_url == "https://example.supabase.co"
    assert config.email == "driver@example.com"
    assert config.report_interval == 20.0
    assert config.high_accuracy is False
    assert config.geolocation_timeout == 5.0


def test_overrides_take_precedence(courier_env: pytest.MonkeyPatch) -> None:
    courier_env.setenv("COURIER_REPORT_INTERVAL", "20")
    config = CourierConfig.from_env(report_interval=5.0, high_accuracy=False)
    assert config.report_interval == 5.0
    assert config.high_accuracy is False


def test_unparseable_bool_uses_default(courier_env: pytest.MonkeyPatch) -> None:
    courier_env.setenv("COURIER_HIGH_ACCURACY", "maybe")
    assert CourierConfig.from_env().high_accuracy is True


def test_bad_number_is_rejected(courier_env: pytest.MonkeyPatch) -> None:
    courier_env.setenv("COURIER_GEOLOCATION_TIMEOUT", "soon")
    with pytest.raises(CourierConfigError, match="COURIER_GEOLOCATION_TIMEOUT"):
        CourierConfig.from_env()


def test_missing_api_key_is_rejected(courier_env: pytest.MonkeyPatch) -> None:
    courier_env.delenv("COURIER_API_KEY")
    with pytest.raises(CourierConfigError, match="api_key"):
        CourierConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"report_interval": 0},
        {"geolocation_timeout": -1},
        {"geolocation_maximum_age": -0.5},
        {"fresh_threshold": -1},
        {"session_ttl": -60},
        {"realtime_heartbeat": 0},
        {"supabase_url": ""},
    ],
)
def test_invalid_values_are_rejected(kwargs: dict[str, object]) -> None:
    params: dict[str, object] = {"supabase_url": "https://example.supabase.co", "api_key": "anon"}
    params.update(kwargs)
    with pytest.raises(CourierConfigError):
        CourierConfig(**params)  # type: ignore[arg-type]


def test_zero_session_ttl_is_allowed() -> None:
    config = CourierConfig(
        supabase_url="https://example.supabase.co",
        api_key="anon",
        session_ttl=0,
        fresh_threshold=0,
    )
    assert config.session_ttl == 0
