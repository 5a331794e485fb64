"""Resolve a stable location to the best matching nearby place."""

import asyncio
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

import structlog

from budget.models import Category, CategorySnapshot
from observability import metrics
from places.base import PlaceProvider

from .category_mapper import CategoryMapper, default_mapper
from .errors import ProviderError, ProviderTimeoutError
from .geo import Coordinate, distance_m, round_coordinate
from .models import CacheEntry, CancelToken, PlaceCandidate, PlaceMatch

logger = structlog.get_logger().bind(source="resolver")


class ResolutionCache:
    """Provider results keyed by rounded coordinate, with TTL and size cap.

    An entry at or past ``expiry_s`` is treated as absent and dropped.
    """

    def __init__(self, expiry_s: float = 300, max_entries: int = 256, precision: int = 3):
        self.expiry = timedelta(seconds=expiry_s)
        self.max_entries = max_entries
        self.precision = precision
        self._entries: OrderedDict[tuple[float, float], CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def make_key(self, coord: Coordinate) -> tuple[float, float]:
        return round_coordinate(coord, self.precision)

    def get(
        self, coord: Coordinate, provider_categories: frozenset[str], now: datetime
    ) -> CacheEntry | None:
        key = self.make_key(coord)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if now - entry.fetched_at >= self.expiry:
            del self._entries[key]
            return None
        # Entry was fetched for a narrower filter than we now need
        if not provider_categories <= entry.provider_categories:
            return None
        self._entries.move_to_end(key)
        return entry

    def put(
        self,
        coord: Coordinate,
        candidates: list[PlaceCandidate],
        provider_categories: frozenset[str],
        now: datetime,
    ) -> None:
        key = self.make_key(coord)
        self._entries[key] = CacheEntry(
            candidates=list(candidates),
            fetched_at=now,
            provider_categories=frozenset(provider_categories),
        )
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def evict_expired(self, now: datetime, max_age: timedelta | None = None) -> int:
        """Drop entries older than max_age (default: the expiry window)."""
        cutoff = max_age or self.expiry
        stale = [k for k, e in self._entries.items() if now - e.fetched_at >= cutoff]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


class PlaceResolver:
    """Queries a place provider around an anchor and picks the winning candidate.

    Selection is two-tier: any candidate closer than ``exact_match_epsilon_m``
    counts as an exact hit and the closest of those wins; otherwise the
    closest mapped candidate wins. Candidates farther than ``search_radius_m``
    from the anchor never win, even when they come from the cache.
    """

    def __init__(
        self,
        provider: PlaceProvider,
        clock: Callable[[], datetime],
        mapper: CategoryMapper | None = None,
        cache: ResolutionCache | None = None,
        search_radius_m: float = 25.0,
        exact_match_epsilon_m: float = 0.1,
        query_timeout_s: float | None = 10.0,
    ):
        self.provider = provider
        self._clock = clock
        self.mapper = mapper or default_mapper
        self.cache = cache if cache is not None else ResolutionCache()
        self.search_radius_m = search_radius_m
        self.exact_match_epsilon_m = exact_match_epsilon_m
        self.query_timeout_s = query_timeout_s

    async def resolve(
        self,
        anchor: Coordinate,
        categories: CategorySnapshot,
        token: CancelToken | None = None,
    ) -> PlaceMatch | None:
        """Best matching place for the anchor, or None.

        Raises:
            ProviderError: the provider query failed or timed out. Nothing is cached.
        """
        provider_filter = self.mapper.provider_filter(categories.names())
        if not provider_filter:
            logger.debug("resolve_skipped_no_categories")
            return None

        candidates = await self._candidates(anchor, provider_filter, token)
        if candidates is None:
            return None
        return self.select(anchor, candidates, categories)

    async def _candidates(
        self,
        anchor: Coordinate,
        provider_filter: frozenset,
        token: CancelToken | None,
    ) -> list[PlaceCandidate] | None:
        now = self._clock()
        entry = self.cache.get(anchor, provider_filter, now)
        if entry is not None:
            metrics.counter("cache_hits")
            logger.debug("cache_hit", key=self.cache.make_key(anchor), count=len(entry.candidates))
            return entry.candidates

        metrics.counter("cache_misses")
        metrics.counter("provider_queries")
        logger.info(
            "provider_query",
            center=anchor.short(),
            radius_m=self.search_radius_m,
            categories=sorted(provider_filter),
        )
        try:
            with metrics.timer("provider_query"):
                results = await asyncio.wait_for(
                    self.provider.query(anchor, self.search_radius_m, provider_filter),
                    timeout=self.query_timeout_s,
                )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"place query timed out after {self.query_timeout_s}s"
            ) from e
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"place query failed: {e}") from e

        if token is not None and token.cancelled:
            logger.debug("resolve_discarded", reason=token.reason)
            return None

        self.cache.put(anchor, results, provider_filter, self._clock())
        metrics.gauge("cache_entries", len(self.cache))
        logger.info("provider_results", count=len(results))
        return results

    def select(
        self,
        anchor: Coordinate,
        candidates: list[PlaceCandidate],
        categories: CategorySnapshot,
    ) -> PlaceMatch | None:
        scored: list[tuple[PlaceCandidate, Category]] = []
        for candidate in candidates:
            category = self.mapper.match_category(candidate.provider_category, categories)
            if category is None:
                continue
            distance = distance_m(anchor, candidate.coordinate)
            # Cached results may have been fetched around another anchor in the same cell
            if distance > self.search_radius_m:
                continue
            scored.append((replace(candidate, distance_from_anchor=distance), category))

        if not scored:
            logger.debug("no_matching_places", candidates=len(candidates))
            return None

        exact = [s for s in scored if s[0].distance_from_anchor < self.exact_match_epsilon_m]
        pool = exact or scored
        winner, category = min(pool, key=lambda s: s[0].distance_from_anchor)
        logger.info(
            "place_matched",
            place=winner.identity,
            category=category.name,
            distance_m=round(winner.distance_from_anchor, 2),
            exact=bool(exact),
        )
        return PlaceMatch(candidate=winner, category=category, exact=bool(exact))
