"""Shared test fixtures for willpower reminders."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from budget.models import Category, CategorySnapshot  # noqa: E402
from notify.base import NotificationSink  # noqa: E402
from observability import metrics  # noqa: E402
from places.base import PlaceProvider  # noqa: E402
from reminders.errors import NotificationError, ProviderError  # noqa: E402
from reminders.geo import Coordinate  # noqa: E402
from reminders.models import LocationFix  # noqa: E402
from shared_types import AppCategory  # noqa: E402

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
HOME = Coordinate(40.74100, -73.98900)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeProvider(PlaceProvider):
    """Records queries and returns canned places (or raises)."""

    provider_name = "fake"

    def __init__(self, places=None, error: Exception | None = None):
        self.places = list(places or [])
        self.error = error
        self.calls: list[tuple] = []

    async def query(self, center, radius_m, categories):
        self.calls.append((center, radius_m, frozenset(categories)))
        if self.error is not None:
            raise self.error
        wanted = set(categories)
        return [p for p in self.places if p.provider_category in wanted]


class FakeSink(NotificationSink):
    """Collects sent messages; optionally fails."""

    sink_name = "fake"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, title, body):
        self.sent.append((title, body))
        if self.fail:
            raise NotificationError("sink down")


def make_fix(coord: Coordinate, accuracy: float = 5.0, ts: datetime = T0) -> LocationFix:
    return LocationFix(coordinate=coord, horizontal_accuracy=accuracy, timestamp=ts)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def eating_out():
    return Category(
        name=AppCategory.EATING_OUT.value, target_amount=100, timeframe="wk", remaining_budget=60
    )


@pytest.fixture
def groceries():
    return Category(name=AppCategory.GROCERIES.value, target_amount=250, timeframe="mo")


@pytest.fixture
def snapshot(eating_out, groceries):
    return CategorySnapshot([eating_out, groceries])


@pytest.fixture
def provider_error():
    return ProviderError("upstream 503")


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "targets.db"
