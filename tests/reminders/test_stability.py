"""Tests for dwell detection."""

import pytest

from conftest import HOME, make_fix
from observability import metrics
from reminders.errors import InvariantViolation
from reminders.geo import offset
from reminders.stability import StabilityTracker


@pytest.fixture
def tracker(clock):
    return StabilityTracker(clock)


class TestOnFix:
    def test_first_fix_sets_anchor(self, tracker, clock):
        assert tracker.on_fix(make_fix(HOME)) is True
        assert tracker.anchor.location == HOME
        assert tracker.anchor.since == clock.now
        assert tracker.latest_location == HOME

    def test_rejects_imprecise_fix(self, tracker):
        assert tracker.on_fix(make_fix(HOME, accuracy=25.0)) is False
        assert tracker.anchor is None
        assert tracker.latest_location is None
        assert metrics.get("fixes_rejected") == 1

    def test_accuracy_at_ceiling_is_rejected(self, tracker):
        assert tracker.on_fix(make_fix(HOME, accuracy=20.0)) is False
        assert tracker.on_fix(make_fix(HOME, accuracy=19.9)) is True

    def test_jitter_keeps_anchor(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        since = tracker.anchor.since
        clock.advance(2)
        tracker.on_fix(make_fix(offset(HOME, north_m=3.0)))
        assert tracker.anchor.location == HOME
        assert tracker.anchor.since == since
        assert tracker.latest_location == offset(HOME, north_m=3.0)

    def test_movement_replaces_anchor(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        clock.advance(2)
        moved = offset(HOME, east_m=10.0)
        tracker.on_fix(make_fix(moved))
        assert tracker.anchor.location == moved
        assert tracker.anchor.since == clock.now


class TestEvaluate:
    def test_nothing_without_anchor(self, tracker, clock):
        assert tracker.evaluate(clock.now, None) is None
        assert tracker.evaluate(clock.now, HOME) is None

    def test_fires_after_threshold(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        clock.advance(4.9)
        assert tracker.evaluate(clock.now, HOME) is None
        clock.advance(0.1)
        event = tracker.evaluate(clock.now, HOME)
        assert event is not None
        assert event.location == HOME
        assert event.dwell_seconds == pytest.approx(5.0)
        assert metrics.get("stable_events") == 1

    def test_fires_once_per_dwell(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        clock.advance(6)
        assert tracker.evaluate(clock.now, HOME) is not None
        assert tracker.anchor.since is None
        for _ in range(5):
            clock.advance(10)
            tracker.on_fix(make_fix(offset(HOME, north_m=1.0)))
            assert tracker.evaluate(clock.now, tracker.latest_location) is None

    def test_move_away_and_back_fires_again(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        clock.advance(5)
        assert tracker.evaluate(clock.now, HOME) is not None

        away = offset(HOME, north_m=50.0)
        clock.advance(1)
        tracker.on_fix(make_fix(away))
        clock.advance(1)
        tracker.on_fix(make_fix(HOME))
        assert tracker.anchor.location == HOME
        clock.advance(5)
        assert tracker.evaluate(clock.now, HOME) is not None

    def test_movement_seen_at_evaluate_resets(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        clock.advance(6)
        moved = offset(HOME, east_m=20.0)
        assert tracker.evaluate(clock.now, moved) is None
        assert tracker.anchor.location == moved
        assert tracker.anchor.since == clock.now

    def test_clock_going_backwards_raises(self, tracker, clock):
        tracker.on_fix(make_fix(HOME))
        with pytest.raises(InvariantViolation):
            tracker.evaluate(clock.now.replace(year=2020), HOME)

    def test_custom_thresholds(self, clock):
        tracker = StabilityTracker(clock, stillness_threshold_m=1.0, stability_threshold_s=2.0)
        tracker.on_fix(make_fix(HOME))
        clock.advance(1)
        tracker.on_fix(make_fix(offset(HOME, north_m=2.0)))
        clock.advance(2)
        event = tracker.evaluate(clock.now, tracker.latest_location)
        assert event is not None
        assert event.location == offset(HOME, north_m=2.0)

    def test_reset(self, tracker):
        tracker.on_fix(make_fix(HOME))
        tracker.reset()
        assert tracker.anchor is None
        assert tracker.latest_location is None
