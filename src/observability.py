"""Reminder engine instrumentation.

Tracker, resolver, dispatcher and controller all report into one
module-level ``metrics`` collector. At the end of a run the CLI logs a
summary that follows a fix down the pipeline: fixes rejected, stable
dwells, provider lookups and cache use, then reminders sent or suppressed.
"""

import time
from contextlib import contextmanager

import structlog

logger = structlog.get_logger().bind(source="engine_metrics")

# Pipeline stages in the order a fix passes through them
PIPELINE = (
    "fixes_rejected",
    "stable_events",
    "provider_queries",
    "provider_failures",
    "resolutions_discarded",
    "notifications_sent",
    "notifications_suppressed",
    "notification_failures",
)


class Metrics:
    """Counters, the latest cache size, and provider/sink latencies."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}
        self._latencies: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def gauge(self, name: str, value: float):
        """Record a level such as ``cache_entries``; only the last value is kept."""
        self._gauges[name] = value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time an awaited call such as a provider query, in milliseconds."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._latencies.setdefault(name, []).append((time.perf_counter() - start) * 1000)

    def cache_hit_ratio(self) -> float | None:
        """Share of resolutions served from the cache, None before any lookup."""
        hits = self.get("cache_hits")
        lookups = hits + self.get("cache_misses")
        if not lookups:
            return None
        return round(hits / lookups, 3)

    def pipeline(self) -> dict[str, int]:
        return {stage: self.get(stage) for stage in PIPELINE}

    def summary(self) -> dict:
        latencies = {
            name: {
                "calls": len(samples),
                "mean_ms": round(sum(samples) / len(samples), 1),
                "max_ms": round(max(samples), 1),
            }
            for name, samples in self._latencies.items()
            if samples
        }
        return {
            "pipeline": self.pipeline(),
            "cache": {
                "hits": self.get("cache_hits"),
                "misses": self.get("cache_misses"),
                "hit_ratio": self.cache_hit_ratio(),
                "entries": self._gauges.get("cache_entries"),
            },
            "latency": latencies,
        }

    def reset(self):
        self._counters.clear()
        self._gauges.clear()
        self._latencies.clear()


metrics = Metrics()


def log_run_summary():
    """Emit ``engine_run_summary`` with the pipeline counts and cache stats."""
    summary = metrics.summary()
    logger.info(
        "engine_run_summary",
        **summary["pipeline"],
        cache_hit_ratio=summary["cache"]["hit_ratio"],
        latency=summary["latency"],
    )
