"""Rate-limited reminder notifications."""

from collections import OrderedDict
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Callable

import structlog

from budget.models import Category
from notify.base import NotificationSink
from observability import metrics

from .errors import NotificationError
from .models import CancelToken

logger = structlog.get_logger().bind(source="dispatcher")

DEFAULT_TITLE = "Budget Reminder"


class DispatchResult(StrEnum):
    SENT = "sent"
    SUPPRESSED = "suppressed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def format_reminder(place_name: str, category: Category) -> str:
    return (
        f"You're at {place_name}. "
        f"Your target budget for {category.name} is ${category.target_amount} per {category.timeframe}. "
        f"You have ${category.remaining_budget} left."
    )


class CooldownRecord:
    """Last notification time per place identity, bounded by age and size."""

    def __init__(self, window_s: float = 300, max_entries: int = 1024):
        self.window = timedelta(seconds=window_s)
        self.max_entries = max_entries
        self._last: OrderedDict[str, datetime] = OrderedDict()

    def __len__(self) -> int:
        return len(self._last)

    def __contains__(self, place: str) -> bool:
        return place in self._last

    def last_notified(self, place: str) -> datetime | None:
        return self._last.get(place)

    def in_cooldown(self, place: str, now: datetime) -> bool:
        last = self._last.get(place)
        return last is not None and now - last < self.window

    def record(self, place: str, now: datetime) -> None:
        self._last[place] = now
        self._last.move_to_end(place)
        while len(self._last) > self.max_entries:
            self._last.popitem(last=False)

    def prune(self, now: datetime, max_age: timedelta | None = None) -> int:
        """Forget places notified longer ago than max_age (default: the window)."""
        cutoff = max_age or self.window
        stale = [p for p, t in self._last.items() if now - t >= cutoff]
        for p in stale:
            del self._last[p]
        return len(stale)


class ReminderDispatcher:
    """Formats reminders and sends them through a sink, at most once per cooldown."""

    def __init__(
        self,
        sink: NotificationSink,
        clock: Callable[[], datetime],
        cooldown: CooldownRecord | None = None,
        title: str = DEFAULT_TITLE,
    ):
        self.sink = sink
        self._clock = clock
        self.cooldown = cooldown if cooldown is not None else CooldownRecord()
        self.title = title

    async def maybe_send(
        self,
        place_name: str,
        category: Category,
        now: datetime | None = None,
        token: CancelToken | None = None,
    ) -> DispatchResult:
        now = now or self._clock()
        if token is not None and token.cancelled:
            metrics.counter("resolutions_discarded")
            logger.debug("dispatch_cancelled", place=place_name, reason=token.reason)
            return DispatchResult.CANCELLED

        if self.cooldown.in_cooldown(place_name, now):
            metrics.counter("notifications_suppressed")
            logger.info("notification_suppressed", place=place_name)
            return DispatchResult.SUPPRESSED

        # Recorded before sending: a failed send still counts against the cooldown
        self.cooldown.record(place_name, now)
        body = format_reminder(place_name, category)
        try:
            await self.sink.send(self.title, body)
        except NotificationError as e:
            metrics.counter("notification_failures")
            logger.warning("notification_failed", place=place_name, error=str(e))
            return DispatchResult.FAILED
        except Exception as e:
            metrics.counter("notification_failures")
            logger.error("notification_failed_unexpected", place=place_name, error=str(e))
            return DispatchResult.FAILED

        metrics.counter("notifications_sent")
        logger.info("notification_sent", place=place_name, category=category.name)
        return DispatchResult.SENT
