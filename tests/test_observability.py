"""Tests for the engine metrics collector."""

import observability
from observability import Metrics, log_run_summary, metrics


def test_pipeline_counts_every_stage():
    m = Metrics()
    m.counter("stable_events")
    m.counter("notifications_sent", 2)
    pipeline = m.pipeline()
    assert pipeline["stable_events"] == 1
    assert pipeline["notifications_sent"] == 2
    assert pipeline["fixes_rejected"] == 0
    assert m.get("missing") == 0


def test_cache_stats():
    m = Metrics()
    assert m.cache_hit_ratio() is None
    m.counter("cache_hits", 3)
    m.counter("cache_misses")
    m.gauge("cache_entries", 7)
    cache = m.summary()["cache"]
    assert cache == {"hits": 3, "misses": 1, "hit_ratio": 0.75, "entries": 7}


def test_latency_in_milliseconds():
    m = Metrics()
    with m.timer("provider_query"):
        pass
    latency = m.summary()["latency"]["provider_query"]
    assert latency["calls"] == 1
    assert latency["max_ms"] >= 0


def test_reset():
    m = Metrics()
    m.counter("stable_events")
    m.gauge("cache_entries", 1)
    m.reset()
    summary = m.summary()
    assert set(summary["pipeline"].values()) == {0}
    assert summary["cache"]["entries"] is None
    assert summary["latency"] == {}


def test_run_summary_log_event(monkeypatch):
    logged = []

    class RecordingLogger:
        def info(self, event, **kw):
            logged.append((event, kw))

    monkeypatch.setattr(observability, "logger", RecordingLogger())
    metrics.counter("notifications_sent")
    metrics.counter("cache_misses")
    log_run_summary()
    name, event = logged[0]
    assert name == "engine_run_summary"
    assert event["notifications_sent"] == 1
    assert event["cache_hit_ratio"] == 0.0
