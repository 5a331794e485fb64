"""Engine CLI commands: run against a trace, one-shot place check."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from cli.utils import build_engine, get_config, get_store

console = Console()


@click.command("run")
@click.option("--trace", "trace_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON-lines GPS trace to replay")
@click.option("--speed", default=1.0, type=click.FloatRange(min=0.01), help="Replay speed multiplier")
@click.option("--linger", default=0.0, type=click.FloatRange(min=0.0),
              help="Trace seconds to keep evaluating after the last fix")
@click.pass_context
def run(ctx, trace_path: Path, speed: float, linger: float):
    """Run the reminder engine against a replayed location trace."""
    from observability import log_run_summary, metrics
    from reminders.feed import TraceFileFeed

    config = get_config(ctx)
    store = get_store(config)
    if store.snapshot().is_empty:
        console.print("[yellow]No targets set; nothing to remind about.[/]")
        return

    async def _run():
        feed = TraceFileFeed(trace_path, realtime=True, speed=speed)
        controller = build_engine(config, store=store, clock=feed.clock)
        controller.tick_interval_s = max(0.05, controller.tick_interval_s / speed)
        try:
            await controller.run(feed, linger_s=linger / speed)
        finally:
            controller.detach_store()
            await controller.resolver.provider.aclose()
            await controller.dispatcher.sink.aclose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/]")
    log_run_summary()
    stages = metrics.pipeline()
    ratio = metrics.cache_hit_ratio()
    hit_text = "-" if ratio is None else f"{ratio:.0%}"
    console.print(
        f"Stable events: {stages['stable_events']} | "
        f"sent: {stages['notifications_sent']} | "
        f"suppressed: {stages['notifications_suppressed']} | "
        f"cache hits: {hit_text}"
    )


@click.command("check")
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.pass_context
def check(ctx, lat: float, lon: float):
    """Resolve a coordinate against current targets without notifying."""
    from places.factory import create_place_provider
    from reminders.dispatcher import format_reminder
    from reminders.errors import ProviderError
    from reminders.geo import Coordinate
    from reminders.models import utc_now
    from reminders.resolver import PlaceResolver

    config = get_config(ctx)
    snapshot = get_store(config).snapshot()
    if snapshot.is_empty:
        console.print("[yellow]No targets set.[/]")
        return

    try:
        coord = Coordinate(lat, lon)
    except ValueError as e:
        raise click.BadParameter(str(e))

    async def _check():
        provider = create_place_provider(config)
        try:
            resolver = PlaceResolver(
                provider,
                utc_now,
                search_radius_m=config.resolver.search_radius_m,
                exact_match_epsilon_m=config.resolver.exact_match_epsilon_m,
                query_timeout_s=config.resolver.query_timeout_s,
            )
            return await resolver.resolve(coord, snapshot)
        finally:
            await provider.aclose()

    try:
        match = asyncio.run(_check())
    except ProviderError as e:
        raise click.ClickException(f"Place search failed: {e}")

    if match is None:
        console.print("No matching place nearby.")
        return
    c = match.candidate
    kind = "exact" if match.exact else "closest"
    console.print(f"[cyan]{c.identity}[/] ({c.provider_category}, {c.distance_from_anchor:.1f}m, {kind})")
    console.print(format_reminder(c.identity, match.category), soft_wrap=True)
