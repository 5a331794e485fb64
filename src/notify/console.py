"""Print reminders to the terminal."""

from rich.console import Console
from rich.panel import Panel

from .base import NotificationSink


class ConsoleSink(NotificationSink):
    sink_name = "console"

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    async def send(self, title: str, body: str) -> None:
        self.console.print(Panel(body, title=f"[bold]{title}[/]", border_style="green"))
