"""Tests for location feeds and trace parsing."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import HOME, T0, make_fix
from reminders.feed import QueueLocationFeed, ReplayClock, TraceFileFeed, parse_fix


class TestParseFix:
    def test_iso_timestamp(self):
        fix = parse_fix({"lat": 40.741, "lon": -73.989, "accuracy": 8, "ts": "2024-05-01T12:00:00+00:00"})
        assert fix.coordinate.latitude == 40.741
        assert fix.horizontal_accuracy == 8.0
        assert fix.timestamp == T0

    def test_naive_timestamp_is_utc(self):
        fix = parse_fix({"lat": 0, "lon": 0, "ts": "2024-05-01T12:00:00"})
        assert fix.timestamp == T0

    def test_epoch_timestamp(self):
        fix = parse_fix({"lat": 0, "lon": 0, "ts": T0.timestamp()})
        assert fix.timestamp == T0

    def test_missing_coordinate(self):
        with pytest.raises(KeyError):
            parse_fix({"lat": 1.0})

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            parse_fix({"lat": 91.0, "lon": 0})


def _write_trace(path, records, extra_lines=()):
    lines = [json.dumps(r) for r in records] + list(extra_lines)
    path.write_text("\n".join(lines) + "\n")


class TestTraceFileFeed:
    def test_load_skips_bad_lines(self, tmp_path):
        trace = tmp_path / "trace.jsonl"
        _write_trace(
            trace,
            [{"lat": 40.741, "lon": -73.989, "ts": "2024-05-01T12:00:00Z"}],
            extra_lines=["# comment", "", "not json", '{"lat": 1}'],
        )
        fixes = TraceFileFeed(trace).load()
        assert len(fixes) == 1

    @pytest.mark.asyncio
    async def test_iterates_without_sleeping(self, tmp_path):
        trace = tmp_path / "trace.jsonl"
        _write_trace(trace, [
            {"lat": 40.741, "lon": -73.989, "ts": 0},
            {"lat": 40.741, "lon": -73.989, "ts": 3600},
        ])
        feed = TraceFileFeed(trace, realtime=False)
        fixes = [fix async for fix in feed]
        assert len(fixes) == 2
        assert fixes[1].timestamp - fixes[0].timestamp == timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_clock_follows_trace(self, tmp_path):
        trace = tmp_path / "trace.jsonl"
        _write_trace(trace, [{"lat": 40.741, "lon": -73.989, "ts": "2024-05-01T12:00:00Z"}])
        feed = TraceFileFeed(trace, realtime=False)
        async for _ in feed:
            assert T0 <= feed.clock() < T0 + timedelta(seconds=5)

    def test_rejects_bad_speed(self, tmp_path):
        with pytest.raises(ValueError):
            TraceFileFeed(tmp_path / "x.jsonl", speed=0)


class TestReplayClock:
    def test_wall_clock_before_start(self):
        clock = ReplayClock()
        assert abs(clock() - datetime.now(timezone.utc)) < timedelta(seconds=5)

    def test_scaled_after_start(self, monkeypatch):
        ticks = iter([100.0, 102.0])
        monkeypatch.setattr("reminders.feed.time.monotonic", lambda: next(ticks, 102.0))
        clock = ReplayClock(speed=10)
        clock.start(T0)
        assert clock() == T0 + timedelta(seconds=20)


class TestQueueLocationFeed:
    @pytest.mark.asyncio
    async def test_yields_until_closed(self):
        feed = QueueLocationFeed()
        await feed.put(make_fix(HOME))
        feed.put_nowait(make_fix(HOME, accuracy=3))
        feed.close()
        fixes = [fix async for fix in feed]
        assert [f.horizontal_accuracy for f in fixes] == [5.0, 3]

    def test_put_after_close_fails(self):
        feed = QueueLocationFeed()
        feed.close()
        with pytest.raises(RuntimeError):
            feed.put_nowait(make_fix(HOME))
