"""Typer application.

The CLI only wires collaborators together (settings provider, filesystem
host, console notifier, HTTP client) and hands documents to the
orchestrator; all pipeline logic lives in `core.services`.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from adapters.console_notifier import ConsoleNotifier
from adapters.file_watcher import watch_files
from adapters.filesystem_host import FileSystemHost
from adapters.minification_client import MinificationClient
from cli import doctor
from cli.ui_components import build_settings_table, build_stats_table
from core.config import NEW_FILE_PREFIXES, AppSettings, EnvironmentSettingsProvider
from core.domain.errors import ConfigurationError
from core.domain.models import MinificationOutcome, SourceDocument
from core.interfaces.minifier import Minifier
from core.logging_utils import configure_logging
from core.services.minify_pipeline import InvocationState, MinificationOrchestrator, PipelineHooks

app = typer.Typer(
    no_args_is_help=True,
    help="Minify CSS and JavaScript files through the Toptal minification API.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _build_minifier(settings: AppSettings) -> Minifier:
    return MinificationClient(settings)


def _check_prefix(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in NEW_FILE_PREFIXES:
        raise typer.BadParameter(f"must be one of: {', '.join(NEW_FILE_PREFIXES)}")
    return value


def _load_or_exit(provider: EnvironmentSettingsProvider) -> AppSettings:
    try:
        return provider.load()
    except ConfigurationError as exc:
        _console.print(f"[bold red]✖[/bold red] {escape(exc.message)}", soft_wrap=True)
        raise typer.Exit(code=1) from exc


def _build_orchestrator(
    provider: EnvironmentSettingsProvider,
    host: FileSystemHost,
    *,
    verbose: bool,
) -> MinificationOrchestrator:
    def on_state(document: SourceDocument, state: InvocationState) -> None:
        if verbose and state is not InvocationState.IDLE:
            _console.print(f"[dim]{document.file_name}: {state.value}[/dim]")

    return MinificationOrchestrator(
        host=host,
        notifier=ConsoleNotifier(_console),
        settings_provider=provider,
        minifier_factory=_build_minifier,
        hooks=PipelineHooks(state_changed=on_state),
    )


async def _minify_paths(
    orchestrator: MinificationOrchestrator,
    host: FileSystemHost,
    paths: List[Path],
    new_file: Optional[bool],
) -> list[MinificationOutcome]:
    async def one(path: Path) -> MinificationOutcome | None:
        try:
            document = await host.open_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            _console.print(f"[bold red]✖[/bold red] Cannot read {path}: {exc}", soft_wrap=True)
            return None
        return await orchestrator.minify_document(document, new_file=new_file)

    results = await asyncio.gather(*(one(path) for path in paths))
    return [r for r in results if r is not None]


@app.command()
def minify(
    paths: List[Path] = typer.Argument(..., help="CSS/JavaScript files to minify."),
    new_file: Optional[bool] = typer.Option(
        None,
        "--new-file/--in-place",
        help="Write a sibling file instead of overwriting (default: from settings).",
    ),
    prefix: Optional[str] = typer.Option(
        None,
        "--prefix",
        callback=_check_prefix,
        help="Suffix inserted before the extension of the new file (.min, -min, ...).",
    ),
    auto_open: Optional[bool] = typer.Option(None, "--open/--no-open", help="Open the new file."),
    stats: Optional[bool] = typer.Option(None, "--stats/--no-stats", help="Show size statistics."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Request timeout (seconds)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline details."),
) -> None:
    """Minify files now, in place or into new sibling files."""

    configure_logging(verbose=verbose)
    provider = EnvironmentSettingsProvider(
        new_file_prefix=prefix,
        auto_open_new_file=auto_open,
        show_size_reduction=stats,
        request_timeout_seconds=timeout,
    )
    _load_or_exit(provider)
    host = FileSystemHost()
    orchestrator = _build_orchestrator(provider, host, verbose=verbose)

    outcomes = asyncio.run(_minify_paths(orchestrator, host, paths, new_file))

    if len(paths) > 1:
        _console.print(build_stats_table(outcomes))
    if len(outcomes) < len(paths) or not all(o.ok for o in outcomes):
        raise typer.Exit(code=1)


@app.command()
def watch(
    paths: List[Path] = typer.Argument(..., help="Files or directories to watch."),
    interval: float = typer.Option(1.0, "--interval", min=0.05, help="Polling interval (seconds)."),
    new_file: Optional[bool] = typer.Option(
        None,
        "--new-file/--in-place",
        help="Write a sibling file instead of overwriting (default: from settings).",
    ),
    prefix: Optional[str] = typer.Option(None, "--prefix", callback=_check_prefix),
    max_polls: Optional[int] = typer.Option(None, "--max-polls", hidden=True),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline details."),
) -> None:
    """Minify files whenever they are saved (minify-on-save for the session)."""

    configure_logging(verbose=verbose)
    provider = EnvironmentSettingsProvider(
        minify_on_save=True,
        minify_in_new_file=new_file,
        new_file_prefix=prefix,
    )
    _load_or_exit(provider)
    host = FileSystemHost()
    orchestrator = _build_orchestrator(provider, host, verbose=verbose)
    unsubscribe = orchestrator.subscribe(host)

    _console.print(f"[cyan]Watching {len(paths)} path(s). Press Ctrl+C to stop.[/cyan]")
    try:
        asyncio.run(watch_files(host, paths, interval=interval, max_polls=max_polls))
    except KeyboardInterrupt:
        _console.print("[dim]Stopped.[/dim]")
    finally:
        unsubscribe()


@app.command("config")
def show_config() -> None:
    """Show the effective settings (environment + .env files)."""

    _console.print(build_settings_table(_load_or_exit(EnvironmentSettingsProvider())))


def run() -> None:
    # Workaround for UnicodeEncodeError on Windows terminals (cp1252 vs utf-8).
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    app()


if __name__ == "__main__":
    run()
