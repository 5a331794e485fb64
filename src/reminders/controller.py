"""Engine lifecycle: periodic stability ticks wired to resolve and dispatch."""

import asyncio
from datetime import datetime
from typing import Callable

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from budget.models import CategorySnapshot
from observability import metrics

from .dispatcher import DispatchResult, ReminderDispatcher
from .errors import InvariantViolation, ProviderError
from .feed import LocationFeed
from .models import CancelToken, LocationFix, StableEvent
from .resolver import PlaceResolver
from .stability import StabilityTracker

logger = structlog.get_logger().bind(source="engine")

TICK_JOB_ID = "stability_tick"


class EngineController:
    """Owns the evaluation loop and the shared category snapshot.

    All state (anchor, cache, cooldowns) is touched only from the event loop
    this controller was started on. Each start() issues a fresh CancelToken;
    stop() cancels it so in-flight resolutions finish but are discarded.
    """

    def __init__(
        self,
        tracker: StabilityTracker,
        resolver: PlaceResolver,
        dispatcher: ReminderDispatcher,
        clock: Callable[[], datetime],
        categories: CategorySnapshot | None = None,
        snapshot_source: Callable[[], CategorySnapshot] | None = None,
        tick_interval_s: float = 1.0,
    ):
        self.tracker = tracker
        self.resolver = resolver
        self.dispatcher = dispatcher
        self._clock = clock
        self._snapshot_source = snapshot_source
        self.categories = categories if categories is not None else CategorySnapshot()
        self.tick_interval_s = tick_interval_s
        self._scheduler: AsyncIOScheduler | None = None
        self._token: CancelToken | None = None
        self._enabled = False
        self._inflight: set[asyncio.Task] = set()
        self._store = None

    # --- lifecycle ---

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> bool:
        """(Re)start the loop. Returns False when there is nothing to remind about."""
        self._stop_loop()
        self._enabled = True
        if self.categories.is_empty:
            logger.info("engine_idle_no_targets")
            return False

        self._token = CancelToken()
        self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        self._scheduler.add_job(
            self.tick,
            IntervalTrigger(seconds=self.tick_interval_s),
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "engine_started", targets=len(self.categories), interval_s=self.tick_interval_s
        )
        return True

    def stop(self) -> None:
        """Cancel the loop. Safe to call when not running."""
        self._enabled = False
        self._stop_loop()

    def _stop_loop(self) -> None:
        if self._token is not None:
            self._token.cancel("stopped")
            self._token = None
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("engine_stopped")

    # --- category snapshot ---

    def refresh_categories(self, snapshot: CategorySnapshot) -> None:
        """Replace the snapshot wholesale; start or idle the loop if enabled.

        A running loop keeps its scheduler and cancel token, so a resolution
        already in flight still completes.
        """
        self.categories = snapshot
        logger.debug("categories_refreshed", count=len(snapshot))
        if not self._enabled:
            return
        if snapshot.is_empty:
            self._stop_loop()
        elif not self.running:
            self.start()

    def attach_store(self, store) -> None:
        """Follow a CategoryStore's change notifications."""
        self.detach_store()
        self._store = store
        self.categories = store.snapshot()
        store.subscribe(self.refresh_categories)

    def detach_store(self) -> None:
        if self._store is not None:
            self._store.unsubscribe(self.refresh_categories)
            self._store = None

    # --- inputs ---

    def on_fix(self, fix: LocationFix) -> bool:
        return self.tracker.on_fix(fix, now=self._clock())

    async def consume(self, feed: LocationFeed) -> int:
        """Feed every fix from the stream into the tracker. Returns fixes seen."""
        count = 0
        async for fix in feed:
            self.on_fix(fix)
            count += 1
        logger.info("feed_exhausted", fixes=count)
        return count

    # --- evaluation ---

    async def tick(self, now: datetime | None = None) -> StableEvent | None:
        """One evaluation cycle. Never raises; resolution runs as a separate task."""
        now = now or self._clock()
        if self._snapshot_source is not None:
            self.categories = self._snapshot_source()

        self._sweep(now)
        try:
            event = self.tracker.evaluate(now, self.tracker.latest_location)
        except InvariantViolation as e:
            logger.error("tracker_invariant_violated", error=str(e))
            self.tracker.reset()
            return None

        if event is None:
            return None

        token = self._token or CancelToken()
        task = asyncio.create_task(self._handle_stable(event, self.categories, token))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return event

    async def _handle_stable(
        self, event: StableEvent, categories: CategorySnapshot, token: CancelToken
    ) -> DispatchResult | None:
        if categories.is_empty:
            return None
        try:
            match = await self.resolver.resolve(event.location, categories, token)
        except ProviderError as e:
            metrics.counter("provider_failures")
            logger.warning("provider_query_failed", error=str(e), location=event.location.short())
            return None
        except Exception:
            logger.exception("resolve_failed_unexpected")
            return None

        if token.cancelled:
            metrics.counter("resolutions_discarded")
            logger.debug("resolution_discarded", reason=token.reason)
            return None
        if match is None:
            return None

        return await self.dispatcher.maybe_send(
            match.candidate.identity, match.category, token=token
        )

    def _sweep(self, now: datetime) -> None:
        horizon = max(self.dispatcher.cooldown.window, self.resolver.cache.expiry)
        dropped_cache = self.resolver.cache.evict_expired(now, max_age=horizon)
        dropped_cooldowns = self.dispatcher.cooldown.prune(now, max_age=horizon)
        if dropped_cache or dropped_cooldowns:
            logger.debug("swept", cache=dropped_cache, cooldowns=dropped_cooldowns)

    async def drain(self) -> list:
        """Wait for in-flight resolutions. Returns their results."""
        if not self._inflight:
            return []
        return await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def run(self, feed: LocationFeed, linger_s: float = 0.0) -> None:
        """Start, consume the feed to its end, optionally keep ticking, then stop."""
        self.start()
        try:
            await self.consume(feed)
            if linger_s > 0:
                await asyncio.sleep(linger_s)
        finally:
            self.stop()
            await self.drain()
