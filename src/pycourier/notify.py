"""User-facing notices (the "toast" collaborator)."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)


class NoticeLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notice(BaseModel):
    """A short message shown to the driver."""

    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    title: str
    message: str = ""


class Notifier(Protocol):
    def notify(self, notice: Notice) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes notices to the library logger.

    Used when the embedding application does not supply its own.
    """

    def notify(self, notice: Notice) -> None:
        level = logging.WARNING if notice.level is NoticeLevel.ERROR else logging.INFO
        _logger.log(level, "%s: %s", notice.title, notice.message)


# Messages for the device and setup failures the tracking loop reports.
GEOLOCATION_UNSUPPORTED = Notice(
    level=NoticeLevel.ERROR,
    title="Location unavailable",
    message="This device does not support geolocation.",
)
PERMISSION_DENIED = Notice(
    level=NoticeLevel.ERROR,
    title="Location permission denied",
    message="Allow location access to share your position.",
)
POSITION_UNAVAILABLE = Notice(
    level=NoticeLevel.ERROR,
    title="Location unavailable",
    message="Could not determine your position. Tracking stopped.",
)
POSITION_TIMEOUT = Notice(
    level=NoticeLevel.ERROR,
    title="Location timeout",
    message="Getting your position took too long. Tracking stopped.",
)
MISSING_DRIVER_ID = Notice(
    level=NoticeLevel.ERROR,
    title="Driver not identified",
    message="Your driver profile was not loaded yet.",
)
TRACKING_STARTED = Notice(
    level=NoticeLevel.SUCCESS,
    title="Tracking started",
    message="Your location is being shared.",
)
TRACKING_STOPPED = Notice(level=NoticeLevel.INFO, title="Tracking stopped")
DELIVERIES_UPDATED = Notice(
    level=NoticeLevel.INFO,
    title="Deliveries updated",
    message="The delivery list was refreshed.",
)
