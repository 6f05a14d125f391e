"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.http_client import build_async_client
from cli.ui_components import print_banner
from core.config import (
    ENV_PREFIX,
    NEW_FILE_PREFIXES,
    AppSettings,
    EnvironmentSettingsProvider,
    write_user_env_vars,
)
from core.domain.errors import ConfigurationError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings, url: str) -> tuple[bool, str]:
    # A GET is enough to prove reachability; the API answers 405 to it.
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or type(exc).__name__


async def _check_endpoints(settings: AppSettings) -> list[tuple[str, bool, str]]:
    targets = [("CSS endpoint", settings.css_endpoint), ("JavaScript endpoint", settings.javascript_endpoint)]
    results = await asyncio.gather(*(_check_http(settings, url) for _, url in targets))
    return [(label, ok, f"{url} -> {detail}") for (label, url), (ok, detail) in zip(targets, results)]


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    try:
        settings = EnvironmentSettingsProvider().load()
    except ConfigurationError as exc:
        _console.print(f"[bold red]FAIL[/bold red] {escape(exc.message)}", soft_wrap=True)
        raise typer.Exit(code=1) from exc

    table = Table(title="CSS/JS Minifier Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Minify on save", "ON" if settings.minify_on_save else "OFF", "")
    mode = f"new file ({settings.new_file_prefix})" if settings.minify_in_new_file else "in place"
    table.add_row("Write mode", "OK", mode)
    table.add_row("Timeout", "OK", f"{settings.request_timeout_seconds:g}s")

    # Connectivity (best-effort)
    failed = False
    for label, ok, detail in asyncio.run(_check_endpoints(settings)):
        failed = failed or not ok
        table.add_row(label, "OK" if ok else "FAIL", detail)

    _console.print(table)

    if failed:
        _console.print(
            "\n[yellow]Note:[/yellow] The minification API is unreachable; check your connection or proxy."
        )


@app.command()
def setup() -> None:
    """Interactive setup (stores preferences in the user config .env)."""

    print_banner(_console)

    minify_on_save = typer.confirm("Minify automatically on save?", default=False)
    in_new_file = typer.confirm("Write minified output to a new file?", default=False)
    prefix = typer.prompt(
        f"New file prefix ({', '.join(NEW_FILE_PREFIXES)})",
        default=".min",
        show_default=True,
    ).strip()
    if prefix not in NEW_FILE_PREFIXES:
        raise typer.BadParameter(f"prefix must be one of: {', '.join(NEW_FILE_PREFIXES)}")
    auto_open = typer.confirm("Open the new file after minifying?", default=False)
    show_stats = typer.confirm("Show size-reduction statistics?", default=True)

    env_path = write_user_env_vars(
        {
            f"{ENV_PREFIX}MINIFY_ON_SAVE": str(minify_on_save).lower(),
            f"{ENV_PREFIX}MINIFY_IN_NEW_FILE": str(in_new_file).lower(),
            f"{ENV_PREFIX}NEW_FILE_PREFIX": prefix,
            f"{ENV_PREFIX}AUTO_OPEN_NEW_FILE": str(auto_open).lower(),
            f"{ENV_PREFIX}SHOW_SIZE_REDUCTION": str(show_stats).lower(),
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
