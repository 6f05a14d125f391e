"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from presentation details.
- Lets several commands reuse the same tables and panels.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import AppSettings
from core.domain.models import MinificationOutcome


def print_banner(console: Console) -> None:
    """Print the welcome banner (interactive commands only)."""

    title = Text("CSS/JS Minifier", style="bold cyan")
    subtitle = Text("Minify • Measure • Write back", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_settings_table(settings: AppSettings) -> Table:
    """Effective settings, one row per field."""

    table = Table(title="Effective settings")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_column("Description", style="dim")
    for name, field in type(settings).model_fields.items():
        table.add_row(name, str(getattr(settings, name)), field.description or "")
    return table


def build_stats_table(outcomes: list[MinificationOutcome]) -> Table:
    """Per-file size summary for batch invocations."""

    table = Table(title="Minification summary")
    table.add_column("File", style="cyan")
    table.add_column("Original", justify="right")
    table.add_column("Minified", justify="right")
    table.add_column("Reduction", style="green", justify="right")
    table.add_column("Error", style="red")
    for outcome in outcomes:
        name = outcome.output_path.name if outcome.output_path else outcome.document_uri.rsplit("/", 1)[-1]
        if outcome.ok and outcome.stats is not None:
            table.add_row(
                name,
                outcome.stats.original_size_display,
                outcome.stats.minified_size_display,
                f"{outcome.stats.reduction_percent}%",
                "",
            )
        else:
            table.add_row(name, "-", "-", "-", outcome.error_kind or "")
    return table
