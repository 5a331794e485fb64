"""Notification sink abstraction."""

import asyncio
from abc import ABC, abstractmethod

import structlog

from reminders.errors import NotificationError

logger = structlog.get_logger().bind(source="notify")


class NotificationSink(ABC):
    """Delivers a titled message to the user.

    Implementations raise NotificationError when delivery fails.
    """

    sink_name: str = "base"

    @abstractmethod
    async def send(self, title: str, body: str) -> None:
        ...

    async def aclose(self) -> None:
        """Release held resources. Default: nothing to release."""


class FanoutSink(NotificationSink):
    """Sends to every child sink; fails only if all of them fail."""

    sink_name = "fanout"

    def __init__(self, sinks: list[NotificationSink]):
        if not sinks:
            raise ValueError("FanoutSink needs at least one sink")
        self.sinks = sinks

    async def send(self, title: str, body: str) -> None:
        results = await asyncio.gather(
            *(s.send(title, body) for s in self.sinks), return_exceptions=True
        )
        errors = []
        for sink, result in zip(self.sinks, results):
            if isinstance(result, Exception):
                logger.warning("fanout_sink_failed", sink=sink.sink_name, error=str(result))
                errors.append(f"{sink.sink_name}: {result}")
        if len(errors) == len(self.sinks):
            raise NotificationError("; ".join(errors))

    async def aclose(self) -> None:
        for s in self.sinks:
            await s.aclose()
