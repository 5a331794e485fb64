"""Location feeds: async streams of position fixes."""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator

import structlog

from .geo import Coordinate
from .models import LocationFix

logger = structlog.get_logger().bind(source="feed")


class LocationFeed(ABC):
    """Push stream of LocationFix records, consumed with ``async for``."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[LocationFix]:
        ...


class QueueLocationFeed(LocationFeed):
    """Feed that callers push fixes into from the event loop."""

    _CLOSED = object()

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    def put_nowait(self, fix: LocationFix) -> None:
        if self._closed:
            raise RuntimeError("feed is closed")
        self._queue.put_nowait(fix)

    async def put(self, fix: LocationFix) -> None:
        if self._closed:
            raise RuntimeError("feed is closed")
        await self._queue.put(fix)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[LocationFix]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item


def parse_fix(record: dict) -> LocationFix:
    """Build a fix from {"lat", "lon", "accuracy", "ts"}.

    ``ts`` may be an ISO-8601 string or epoch seconds; naive values are UTC.
    """
    ts = record.get("ts")
    if ts is None:
        timestamp = datetime.now(timezone.utc)
    elif isinstance(ts, (int, float)):
        timestamp = datetime.fromtimestamp(ts, tz=timezone.utc)
    else:
        timestamp = datetime.fromisoformat(str(ts))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
    return LocationFix(
        coordinate=Coordinate(float(record["lat"]), float(record["lon"])),
        horizontal_accuracy=float(record.get("accuracy", 0.0)),
        timestamp=timestamp,
    )


class ReplayClock:
    """Engine clock that follows a replayed trace.

    Before the first fix it reads the wall clock; afterwards it returns the
    first fix's timestamp plus wall time elapsed since then, scaled by
    ``speed``, so dwell thresholds compress along with the replay.
    """

    def __init__(self, speed: float = 1.0):
        self.speed = speed
        self._origin: datetime | None = None
        self._started: float | None = None

    def start(self, origin: datetime) -> None:
        if self._origin is None:
            self._origin = origin
            self._started = time.monotonic()

    def __call__(self) -> datetime:
        if self._origin is None:
            return datetime.now(timezone.utc)
        return self._origin + timedelta(seconds=(time.monotonic() - self._started) * self.speed)


class TraceFileFeed(LocationFeed):
    """Replays a JSON-lines GPS trace.

    With ``realtime`` the gaps between fix timestamps are slept through,
    divided by ``speed``. Malformed lines are logged and skipped; out-of-order
    timestamps are passed through as-is. ``clock`` tracks replay time
    and can be handed to the engine.
    """

    def __init__(self, path: str | Path, realtime: bool = True, speed: float = 1.0):
        if speed <= 0:
            raise ValueError(f"speed must be > 0, got {speed}")
        self.path = Path(path).expanduser()
        self.realtime = realtime
        self.speed = speed
        self.clock = ReplayClock(speed)

    def load(self) -> list[LocationFix]:
        fixes = []
        with open(self.path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    fixes.append(parse_fix(json.loads(line)))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("trace_line_skipped", line=lineno, error=str(e))
        return fixes

    async def __aiter__(self) -> AsyncIterator[LocationFix]:
        previous: datetime | None = None
        for fix in self.load():
            if self.realtime and previous is not None:
                gap = (fix.timestamp - previous).total_seconds()
                if gap > 0:
                    await asyncio.sleep(gap / self.speed)
            if previous is None:
                self.clock.start(fix.timestamp)
            previous = fix.timestamp
            yield fix
