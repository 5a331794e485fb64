"""Data carried through the reminder pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from budget.models import Category

from .geo import Coordinate


@dataclass(frozen=True)
class LocationFix:
    """Raw position report from a location feed."""

    coordinate: Coordinate
    horizontal_accuracy: float  # meters
    timestamp: datetime


@dataclass
class StableAnchor:
    """Where the user is believed to have stopped.

    ``since`` is None once a dwell has fired; the timer restarts only when
    the anchor is replaced.
    """

    location: Coordinate
    since: datetime | None


@dataclass(frozen=True)
class StableEvent:
    location: Coordinate
    at: datetime
    dwell_seconds: float


@dataclass(frozen=True)
class PlaceCandidate:
    """Nearby point of interest returned by a place provider."""

    external_id: str
    name: str
    coordinate: Coordinate
    provider_category: str | None
    distance_from_anchor: float = 0.0

    @property
    def identity(self) -> str:
        """Key used for notification cooldown."""
        return self.name or self.external_id


@dataclass(frozen=True)
class PlaceMatch:
    candidate: PlaceCandidate
    category: Category
    exact: bool = False


@dataclass
class CacheEntry:
    candidates: list[PlaceCandidate]
    fetched_at: datetime
    provider_categories: frozenset[str] = field(default_factory=frozenset)


class CancelToken:
    """Shared flag passed from a tick through resolve and dispatch."""

    __slots__ = ("cancelled", "reason")

    def __init__(self):
        self.cancelled = False
        self.reason: str | None = None

    def cancel(self, reason: str = "stopped") -> None:
        self.cancelled = True
        self.reason = reason


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(timezone.utc)
