"""Init CLI command."""

from pathlib import Path

import click
from rich.console import Console

from cli.config import write_default_config

console = Console()


@click.command()
@click.option("--path", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=Path.home() / ".willpower" / "config.yaml", show_default=True)
def init(config_path: Path):
    """Write a default config file."""
    existed = config_path.exists()
    write_default_config(config_path)
    if existed:
        console.print(f"[yellow]Config already exists:[/] {config_path}")
    else:
        console.print(f"[green]✓[/] Created config: {config_path}")
