"""OpenStreetMap Overpass API place provider."""

from typing import Iterable

import httpx
import structlog

from cli.retry import http_retry
from reminders.errors import ProviderError
from reminders.geo import Coordinate
from reminders.models import PlaceCandidate
from shared_types import ProviderCategory

from .base import PlaceProvider

logger = structlog.get_logger().bind(source="overpass")

DEFAULT_URL = "https://overpass-api.de/api/interpreter"

# OSM tag values per provider category
OSM_TAGS: dict[ProviderCategory, tuple[str, tuple[str, ...]]] = {
    ProviderCategory.RESTAURANT: ("amenity", ("restaurant", "fast_food", "food_court")),
    ProviderCategory.CAFE: ("amenity", ("cafe",)),
    ProviderCategory.FOOD_MARKET: ("shop", ("supermarket", "greengrocer", "convenience", "grocery")),
    ProviderCategory.BEAUTY: ("shop", ("beauty", "cosmetics", "hairdresser")),
    ProviderCategory.FITNESS_CENTER: ("leisure", ("fitness_centre",)),
    ProviderCategory.GAS_STATION: ("amenity", ("fuel",)),
}


def build_query(center: Coordinate, radius_m: float, categories: Iterable[str], timeout_s: int = 10) -> str:
    """Overpass QL selecting nodes/ways/relations of the wanted categories."""
    lines = [f"[out:json][timeout:{timeout_s}];", "("]
    for raw in sorted(set(categories)):
        try:
            cat = ProviderCategory(raw)
        except ValueError:
            continue
        key, values = OSM_TAGS[cat]
        pattern = "|".join(values)
        lines.append(
            f'  nwr(around:{radius_m:.0f},{center.latitude:.7f},{center.longitude:.7f})'
            f'["{key}"~"^({pattern})$"]["name"];'
        )
    lines.append(");")
    lines.append("out center;")
    return "\n".join(lines)


def classify(tags: dict) -> ProviderCategory | None:
    for cat, (key, values) in OSM_TAGS.items():
        if tags.get(key) in values:
            return cat
    return None


class OverpassProvider(PlaceProvider):
    """Server-side filtered search against an Overpass endpoint."""

    provider_name = "overpass"

    def __init__(
        self,
        url: str = DEFAULT_URL,
        user_agent: str = "willpower-reminders/0.1",
        timeout: float = 15.0,
        retry_decorator=None,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout, headers={"User-Agent": user_agent}
        )
        self._fetch = (retry_decorator or http_retry())(self._fetch_once)

    async def _fetch_once(self, query: str) -> dict:
        response = await self.client.post(self.url, data={"data": query})
        response.raise_for_status()
        return response.json()

    async def query(
        self,
        center: Coordinate,
        radius_m: float,
        categories: Iterable[str],
    ) -> list[PlaceCandidate]:
        categories = list(categories)
        if not categories:
            return []
        ql = build_query(center, radius_m, categories)
        try:
            payload = await self._fetch(ql)
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"overpass returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"overpass request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"overpass returned invalid JSON: {e}") from e
        return self._parse(payload, set(categories))

    def _parse(self, payload: dict, wanted: set[str]) -> list[PlaceCandidate]:
        if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
            raise ProviderError("overpass response has no elements list")

        candidates = []
        for el in payload["elements"]:
            tags = el.get("tags") or {}
            cat = classify(tags)
            if cat is None or cat.value not in wanted:
                continue
            lat = el.get("lat", (el.get("center") or {}).get("lat"))
            lon = el.get("lon", (el.get("center") or {}).get("lon"))
            if lat is None or lon is None:
                continue
            candidates.append(
                PlaceCandidate(
                    external_id=f"{el.get('type', 'node')}/{el.get('id')}",
                    name=tags.get("name", ""),
                    coordinate=Coordinate(float(lat), float(lon)),
                    provider_category=cat.value,
                )
            )
        logger.debug("overpass_parsed", elements=len(payload["elements"]), kept=len(candidates))
        return candidates

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
