"""Driver endpoints.

Endpoints:
  - POST  /rest/v1/rpc/get_driver_profile (current actor's driver row)
  - PATCH /rest/v1/Drivers?id=eq.<id> (store a location sample)
  - GET   /rest/v1/Drivers?order=name (logistics view)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pycourier._api._common import rest_call
from pycourier._constants import DRIVER_PROFILE_RPC, DRIVERS_TABLE, REST_PREFIX
from pycourier._transport import Transport
from pycourier.exceptions import CourierApiError, CourierSessionExpiredError, CourierTransportError
from pycourier.models.driver import Driver
from pycourier.session import Session

_logger = logging.getLogger(__name__)

PROFILE_ENDPOINT = f"{REST_PREFIX}/rpc/{DRIVER_PROFILE_RPC}"
DRIVERS_ENDPOINT = f"{REST_PREFIX}/{DRIVERS_TABLE}"


def _parse_profile(data: Any) -> Driver | None:
    # The RPC may return a single row, a one-row set, or null.
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict) or not data.get("id"):
        return None
    try:
        return Driver.model_validate(data)
    except ValidationError as exc:
        _logger.warning("Discarding malformed driver profile: %s", exc)
        return None


async def fetch_driver_profile(session: Session, transport: Transport) -> Driver | None:
    """Resolve the session to its driver record.

    Returns ``None`` when the account is not a registered driver.  Errors
    returned by the backend and rows that fail validation are also
    reported as ``None``; only an expired session is raised so the
    caller can re-authenticate.
    """
    try:
        data = await rest_call(
            method="POST",
            endpoint=PROFILE_ENDPOINT,
            session=session,
            transport=transport,
            json_body={},
        )
    except CourierSessionExpiredError:
        raise
    except CourierApiError as exc:
        _logger.debug("Driver profile lookup failed: %s", exc)
        return None
    return _parse_profile(data)


def build_location_patch(latitude: float, longitude: float, *, now: datetime | None = None) -> dict[str, Any]:
    """Build the column patch written for one location sample."""
    stamp = now or datetime.now(UTC)
    return {
        "latitude": latitude,
        "longitude": longitude,
        "last_updated": stamp.isoformat(),
    }


async def update_driver_location(
    session: Session,
    transport: Transport,
    driver_id: str,
    latitude: float,
    longitude: float,
) -> None:
    """Persist a location sample on the driver's row.

    Raises
    ------
    CourierApiError
        If the backend rejects the update, or no row matched *driver_id*.
    CourierTransportError
        On network failure.
    """
    data = await rest_call(
        method="PATCH",
        endpoint=DRIVERS_ENDPOINT,
        session=session,
        transport=transport,
        params={"id": f"eq.{driver_id}"},
        json_body=build_location_patch(latitude, longitude),
        prefer="return=representation",
    )
    if isinstance(data, list) and not data:
        # Row-level security hides rows the actor may not update.
        raise CourierApiError(
            f"No driver row updated for id={driver_id}",
            code="no_rows",
            endpoint=DRIVERS_ENDPOINT,
        )


async def fetch_drivers(session: Session, transport: Transport) -> list[Driver]:
    """Fetch all drivers ordered by name."""
    data = await rest_call(
        method="GET",
        endpoint=DRIVERS_ENDPOINT,
        session=session,
        transport=transport,
        params={"select": "*", "order": "name"},
    )
    if not isinstance(data, list):
        raise CourierTransportError(f"Expected a list from {DRIVERS_ENDPOINT}", endpoint=DRIVERS_ENDPOINT)
    return [Driver.model_validate(item) for item in data if isinstance(item, dict)]
