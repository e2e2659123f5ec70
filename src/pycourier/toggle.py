"""Presentation state for the tracking on/off button."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pycourier.models.driver import Driver
from pycourier.tracking import LocationReporter, TrackingState


class Freshness(StrEnum):
    FRESH = "fresh"
    STALE = "stale"
    NEVER = "never"


class ToggleAction(StrEnum):
    START = "start"
    STOP = "stop"


class ToggleView(BaseModel):
    """Everything the dashboard needs to render the toggle."""

    model_config = ConfigDict(frozen=True)

    state: TrackingState
    label: str
    action: ToggleAction
    last_reported_at: datetime | None
    freshness: Freshness


def classify_freshness(
    last_reported_at: datetime | None,
    now: datetime,
    threshold: float = 30.0,
) -> Freshness:
    """Fresh when the last report is at most *threshold* seconds old."""
    if last_reported_at is None:
        return Freshness.NEVER
    age = (now - last_reported_at).total_seconds()
    return Freshness.FRESH if age <= threshold else Freshness.STALE


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrackingToggle:
    """Single-button control bound to a :class:`LocationReporter`."""

    START_LABEL = "Start sharing location"
    STOP_LABEL = "Stop sharing location"

    def __init__(
        self,
        reporter: LocationReporter,
        *,
        fresh_threshold: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._reporter = reporter
        self._fresh_threshold = fresh_threshold
        self._clock = clock

    def view(self, driver: Driver | None = None) -> ToggleView:
        """Current toggle state.

        The timestamp is the newer of the driver record's ``last_updated``
        and the reporter's last accepted sample.
        """
        candidates = [self._reporter.last_reported_at]
        if driver is not None:
            candidates.append(driver.last_updated)
        known = [stamp for stamp in candidates if stamp is not None]
        last = max(known) if known else None
        tracking = self._reporter.is_tracking
        return ToggleView(
            state=self._reporter.state,
            label=self.STOP_LABEL if tracking else self.START_LABEL,
            action=ToggleAction.STOP if tracking else ToggleAction.START,
            last_reported_at=last,
            freshness=classify_freshness(last, self._clock(), self._fresh_threshold),
        )

    async def press(self) -> TrackingState:
        """Run the action the button currently shows."""
        if self._reporter.is_tracking:
            self._reporter.stop()
        else:
            await self._reporter.start()
        return self._reporter.state
