# src/asmo/cli.py
"""
asmo Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Features
--------
- **serve**: run the HTTP API (producer loop + dynamic path routing).
- **snapshot**: take one local measurement and print it, optionally resolved
  through the same query language the HTTP API uses. Handy for checking which
  sensors a device exposes before serving it.

Usage
-----
    $ asmo serve --port 3000
    $ asmo snapshot
    $ asmo snapshot --path 'cores/*/usage,cur_freq'
"""

from __future__ import annotations

import time
import traceback
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from asmo import __version__
from asmo.core.query.errors import ERROR_HINT
from asmo.core.query.path import QueryPathError
from asmo.core.query.resolver import resolve
from asmo.core.settings import load_settings
from asmo.core.snapshot import SnapshotStore
from asmo.core.value import thaw
from asmo.monitor.loop import Monitor

load_dotenv()

app = typer.Typer(
    help="asmo: device telemetry served as a path-addressable value tree.",
    rich_markup_mode="markdown",
)
console = Console()


@app.command()  # type: ignore[misc]
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Bind address (default: ASMO_HOST or 0.0.0.0)."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Bind port (default: ASMO_PORT or 3000)."),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload/--no-reload", help="Restart on code changes (development)."),
    ] = False,
) -> None:
    """Run the HTTP API with the producer loop."""
    from asmo.api import server

    console.print(
        Panel.fit(f"[bold cyan]asmo {__version__}[/bold cyan]\nGET / for all endpoints")
    )
    server.main(host=host, port=port, reload=reload)


@app.command()  # type: ignore[misc]
def snapshot(
    path: Annotated[
        str,
        typer.Option("--path", "-q", help="Query path to resolve, e.g. 'cores/*/usage'."),
    ] = "",
    warmup: Annotated[
        bool,
        typer.Option(
            "--warmup/--no-warmup",
            help="Sample twice, one poll interval apart, so CPU usage is a real delta.",
        ),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """Take one measurement locally and print it (or the part `--path` selects)."""
    cfg = load_settings()
    store = SnapshotStore()

    try:
        monitor = Monitor.from_settings(cfg)
        if warmup:
            monitor.run_once(store)
            time.sleep(cfg.poll_interval_s)
        snap = monitor.run_once(store)
    except Exception as e:
        console.print(f"[bold red]Measurement Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    try:
        outcome = resolve(snap.tree, path, max_depth=cfg.max_fanout_depth).map(thaw)
    except QueryPathError as e:
        console.print(f"[bold red]Bad path:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    if outcome.is_err():
        failure = outcome.unwrap_err()
        console.print(f"[bold red]{failure.message}:[/bold red] /{failure.path}")
        console.print(f"[dim]{ERROR_HINT}[/dim]")
        raise typer.Exit(code=1)

    console.print_json(data=outcome.unwrap())


if __name__ == "__main__":
    app()
