"""Shared CLI utilities."""

from datetime import datetime
from typing import Callable, Optional

import click

from .config import load_config_model


def get_config(ctx=None):
    """Load config, honoring a ``--config`` path stored on the click context."""
    config_path = None
    if ctx is not None and ctx.obj:
        config_path = ctx.obj.get("config_path")
    try:
        return load_config_model(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))


def get_store(config_model):
    """Open the category store at the configured path."""
    from budget.store import CategoryStore

    return CategoryStore(config_model.paths.db_path)


def build_engine(
    config_model,
    store=None,
    provider=None,
    sink=None,
    clock: Optional[Callable[[], datetime]] = None,
):
    """Wire tracker, resolver, dispatcher and controller from config.

    Args:
        config_model: ReminderConfig
        store: CategoryStore to follow for target changes (optional)
        provider: PlaceProvider override (default: from config)
        sink: NotificationSink override (default: from config)
        clock: time source (default: UTC wall clock)
    """
    from notify.factory import create_sink
    from places.factory import create_place_provider
    from reminders.controller import EngineController
    from reminders.dispatcher import CooldownRecord, ReminderDispatcher
    from reminders.models import utc_now
    from reminders.resolver import PlaceResolver, ResolutionCache
    from reminders.stability import StabilityTracker

    clock = clock or utc_now
    st = config_model.stability
    rc = config_model.resolver
    dc = config_model.dispatch

    tracker = StabilityTracker(
        clock,
        accuracy_ceiling_m=st.accuracy_ceiling_m,
        stillness_threshold_m=st.stillness_threshold_m,
        stability_threshold_s=st.stability_threshold_s,
    )
    resolver = PlaceResolver(
        provider or create_place_provider(config_model),
        clock,
        cache=ResolutionCache(
            expiry_s=rc.cache_expiry_s,
            max_entries=rc.cache_max_entries,
            precision=rc.cache_precision,
        ),
        search_radius_m=rc.search_radius_m,
        exact_match_epsilon_m=rc.exact_match_epsilon_m,
        query_timeout_s=rc.query_timeout_s,
    )
    dispatcher = ReminderDispatcher(
        sink or create_sink(config_model),
        clock,
        cooldown=CooldownRecord(window_s=dc.cooldown_s, max_entries=dc.cooldown_max_entries),
        title=dc.title,
    )
    controller = EngineController(
        tracker,
        resolver,
        dispatcher,
        clock,
        tick_interval_s=st.tick_interval_s,
    )
    if store is not None:
        controller.attach_store(store)
    return controller
