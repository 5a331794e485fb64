"""Turns a noisy fix stream into debounced "user is stationary" events."""

from datetime import datetime, timedelta
from typing import Callable

import structlog

from observability import metrics

from .errors import InvariantViolation
from .geo import Coordinate, distance_m
from .models import LocationFix, StableAnchor, StableEvent

logger = structlog.get_logger().bind(source="stability")


class StabilityTracker:
    """Holds at most one anchor and decides when a dwell is long enough.

    Movement means a distance strictly greater than the stillness threshold;
    anything at or inside it is jitter and leaves the anchor untouched.
    """

    def __init__(
        self,
        clock: Callable[[], datetime],
        accuracy_ceiling_m: float = 20.0,
        stillness_threshold_m: float = 4.0,
        stability_threshold_s: float = 5.0,
    ):
        self._clock = clock
        self.accuracy_ceiling_m = accuracy_ceiling_m
        self.stillness_threshold_m = stillness_threshold_m
        self.stability_threshold = timedelta(seconds=stability_threshold_s)
        self._anchor: StableAnchor | None = None
        self._latest: Coordinate | None = None

    @property
    def anchor(self) -> StableAnchor | None:
        return self._anchor

    @property
    def latest_location(self) -> Coordinate | None:
        """Most recent accepted fix."""
        return self._latest

    def reset(self) -> None:
        self._anchor = None
        self._latest = None

    def on_fix(self, fix: LocationFix, now: datetime | None = None) -> bool:
        """Feed one fix. Returns False when the fix was rejected as too imprecise."""
        if fix.horizontal_accuracy >= self.accuracy_ceiling_m:
            metrics.counter("fixes_rejected")
            logger.debug("fix_rejected", accuracy=fix.horizontal_accuracy)
            return False

        now = now or self._clock()
        self._latest = fix.coordinate
        if self._anchor is None:
            self._replace_anchor(fix.coordinate, now)
        elif self._moved(fix.coordinate):
            self._replace_anchor(fix.coordinate, now)
        return True

    def evaluate(self, now: datetime, latest: Coordinate | None) -> StableEvent | None:
        """Periodic check. Emits at most one event per unbroken dwell."""
        anchor = self._anchor
        if anchor is None or latest is None:
            return None

        if self._moved(latest):
            self._replace_anchor(latest, now)
            return None

        if anchor.since is None:
            return None

        if now < anchor.since:
            raise InvariantViolation(
                f"dwell clock went backwards: now={now.isoformat()} since={anchor.since.isoformat()}"
            )

        elapsed = now - anchor.since
        if elapsed < self.stability_threshold:
            logger.debug("dwell_pending", elapsed_s=round(elapsed.total_seconds(), 1))
            return None

        anchor.since = None
        metrics.counter("stable_events")
        logger.info(
            "stable_event",
            location=anchor.location.short(),
            dwell_s=round(elapsed.total_seconds(), 1),
        )
        return StableEvent(location=anchor.location, at=now, dwell_seconds=elapsed.total_seconds())

    def _moved(self, coord: Coordinate) -> bool:
        return distance_m(self._anchor.location, coord) > self.stillness_threshold_m

    def _replace_anchor(self, coord: Coordinate, now: datetime) -> None:
        moved_from = self._anchor.location.short() if self._anchor else None
        self._anchor = StableAnchor(location=coord, since=now)
        logger.debug("anchor_reset", location=coord.short(), moved_from=moved_from)
