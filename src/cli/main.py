"""Willpower CLI: budget targets and location reminders."""

import sys
from pathlib import Path

import click
from rich.console import Console

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import categories, check, init, run, targets
from cli.config import load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (default: ./config.yaml or ~/.willpower/config.yaml)")
@click.pass_context
def cli(ctx, verbose: bool, json_logs: bool, config_path):
    """Willpower - budget reminders when you stop at a shop."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    try:
        config = load_config_model(config_path)
        level = config.logging.level
        json_mode = config.logging.json_mode
        log_file = config.paths.log_file
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        level, json_mode, log_file = "INFO", False, None
    if verbose:
        level = "DEBUG"
    setup_logging(json_mode=json_mode or json_logs, level=level, log_file=log_file)


cli.add_command(targets)
cli.add_command(categories)
cli.add_command(run)
cli.add_command(check)
cli.add_command(init)


if __name__ == "__main__":
    cli()
