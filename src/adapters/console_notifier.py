"""Notification sink for the terminal (Rich)."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape


class ConsoleNotifier:
    """Prints one line per notification: green for success, red for errors."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def info(self, message: str) -> None:
        self._console.print(f"[green]✔[/green] {escape(message)}", soft_wrap=True)

    def error(self, message: str) -> None:
        self._console.print(f"[bold red]✖[/bold red] {escape(message)}", soft_wrap=True)
