"""In-memory place provider backed by a list or a JSON file."""

import json
from pathlib import Path
from typing import Iterable

import structlog

from reminders.errors import ProviderError
from reminders.geo import Coordinate, distance_m
from reminders.models import PlaceCandidate

from .base import PlaceProvider

logger = structlog.get_logger().bind(source="static_places")


class StaticPlaceProvider(PlaceProvider):
    """Filters a fixed set of places client-side by radius and category.

    JSON format: a list of {"id", "name", "lat", "lon", "category"} objects.
    """

    provider_name = "static"

    def __init__(self, places: list[PlaceCandidate] | None = None):
        self.places = list(places or [])

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticPlaceProvider":
        path = Path(path).expanduser()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderError(f"cannot load places file {path}: {e}") from e
        places = []
        for i, item in enumerate(raw):
            try:
                places.append(
                    PlaceCandidate(
                        external_id=str(item.get("id", f"static/{i}")),
                        name=item.get("name", ""),
                        coordinate=Coordinate(float(item["lat"]), float(item["lon"])),
                        provider_category=item.get("category"),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("static_place_skipped", index=i, error=str(e))
        logger.debug("static_places_loaded", path=str(path), count=len(places))
        return cls(places)

    async def query(
        self,
        center: Coordinate,
        radius_m: float,
        categories: Iterable[str],
    ) -> list[PlaceCandidate]:
        wanted = set(categories)
        return [
            p
            for p in self.places
            if p.provider_category in wanted and distance_m(center, p.coordinate) <= radius_m
        ]
