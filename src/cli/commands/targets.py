"""Budget target CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_config, get_store
from shared_types import AppCategory, Timeframe

console = Console()

TIMEFRAME_CHOICES = [t.value for t in Timeframe]


def parse_category(value: str) -> AppCategory:
    """Accept the full label, the enum name, or a slug like ``eating-out``."""
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    for cat in AppCategory:
        label_slug = cat.value.split(" ", 1)[-1].lower().replace(" ", "_")
        if value == cat.value or key == cat.name.lower() or key == label_slug:
            return cat
    valid = ", ".join(c.name.lower().replace("_", "-") for c in AppCategory)
    raise click.BadParameter(f"unknown category {value!r} (choose from: {valid})")


@click.group()
def targets():
    """Manage budget targets."""
    pass


@targets.command("add")
@click.argument("category")
@click.argument("amount", type=click.IntRange(min=0))
@click.option("-t", "--timeframe", default=Timeframe.WEEK.value,
              type=click.Choice(TIMEFRAME_CHOICES), help="Budget period")
@click.pass_context
def targets_add(ctx, category: str, amount: int, timeframe: str):
    """Add a spending target, e.g. `targets add eating-out 100 -t wk`."""
    from budget.models import Category

    cat = parse_category(category)
    store = get_store(get_config(ctx))
    stored = store.add(Category(name=cat.value, target_amount=amount, timeframe=timeframe))
    console.print(f"[green]Added[/] {stored.name} ${stored.target_amount} per {stored.timeframe} [dim]({stored.id[:8]})[/]")


@targets.command("list")
@click.pass_context
def targets_list(ctx):
    """List targets."""
    store = get_store(get_config(ctx))
    rows = store.list_categories()
    if not rows:
        console.print("[yellow]No targets yet. Add one with 'willpower targets add'.[/]")
        return

    table = Table(title="Budget Targets")
    table.add_column("ID", style="dim")
    table.add_column("Category")
    table.add_column("Target", justify="right")
    table.add_column("Per")
    table.add_column("Remaining", justify="right")
    for c in rows:
        remaining = f"${c.remaining_budget}"
        if c.remaining_budget < 0:
            remaining = f"[red]{remaining}[/]"
        table.add_row(c.id[:8], c.name, f"${c.target_amount}", c.timeframe, remaining)
    console.print(table)


def _resolve_id(store, prefix: str):
    matches = [c for c in store.list_categories() if c.id.startswith(prefix)]
    if not matches:
        raise click.ClickException(f"No target with id {prefix!r}")
    if len(matches) > 1:
        raise click.ClickException(f"Ambiguous id {prefix!r}; use more characters")
    return matches[0]


@targets.command("edit")
@click.argument("target_id")
@click.option("--category", "category", default=None, help="New category")
@click.option("--amount", type=click.IntRange(min=0), default=None, help="New target amount")
@click.option("-t", "--timeframe", type=click.Choice(TIMEFRAME_CHOICES), default=None)
@click.pass_context
def targets_edit(ctx, target_id: str, category, amount, timeframe):
    """Edit a target. Resets its remaining budget to the target."""
    store = get_store(get_config(ctx))
    current = _resolve_id(store, target_id)
    if category:
        current.name = parse_category(category).value
    if amount is not None:
        current.target_amount = amount
    if timeframe:
        current.timeframe = timeframe
    store.update(current)
    console.print(f"[green]Updated[/] {current.name} ${current.target_amount} per {current.timeframe}")


@targets.command("spend")
@click.argument("target_id")
@click.argument("remaining", type=int)
@click.pass_context
def targets_spend(ctx, target_id: str, remaining: int):
    """Set the remaining budget for a target (may be negative)."""
    store = get_store(get_config(ctx))
    current = _resolve_id(store, target_id)
    store.update_remaining_budget(current.id, remaining)
    console.print(f"{current.name}: ${remaining} left")


@targets.command("remove")
@click.argument("target_id")
@click.pass_context
def targets_remove(ctx, target_id: str):
    """Delete a target."""
    store = get_store(get_config(ctx))
    current = _resolve_id(store, target_id)
    store.delete(current.id)
    console.print(f"[yellow]Removed[/] {current.name}")


@targets.command("clear")
@click.confirmation_option(prompt="Delete all targets?")
@click.pass_context
def targets_clear(ctx):
    """Delete all targets."""
    count = get_store(get_config(ctx)).clear()
    console.print(f"[yellow]Removed {count} target(s)[/]")


@click.command("categories")
def categories():
    """Show budget categories and the place types that trigger them."""
    from reminders.category_mapper import default_mapper

    table = Table(title="Categories")
    table.add_column("Category")
    table.add_column("CLI name", style="dim")
    table.add_column("Place types")
    for cat in AppCategory:
        places = ", ".join(sorted(p.value for p in default_mapper.to_provider(cat))) or "-"
        table.add_row(cat.value, cat.name.lower().replace("_", "-"), places)
    console.print(table)
