"""CLI — Recorder control commands (talk to a running daemon)."""

from __future__ import annotations

import time
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from flight_recorder.client import DEFAULT_PREFIX, FlightRecorderClient
from flight_recorder.exceptions import APIResponseError

app = typer.Typer(help="Start, stop, reconfigure and snapshot the flight recorder.")
console = Console()

_HELP = """
[bold]=== Flight Recorder Console ===[/bold]
Available commands:
  s - Get status
  1 - Start flight recorder
  2 - Stop flight recorder
  3 - Get snapshot
  4 - Update configuration
  h - Show this help
  q - Quit
"""


def _client(host: str, port: int, prefix: str) -> FlightRecorderClient:
    return FlightRecorderClient(base_url=f"http://{host}:{port}", prefix=prefix)


def _print_status(data: dict) -> None:
    table = Table(title="Flight Recorder Status")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("enabled", str(data.get("enabled")))
    table.add_row("period", str(data.get("period")))
    table.add_row("size", str(data.get("size")))
    console.print(table)


def _save_snapshot(client: FlightRecorderClient, output: Path | None) -> None:
    data = client.snapshot()
    target = output or Path(f"snapshot_{int(time.time())}.trace")
    target.write_bytes(data)
    console.print(f"[green]Snapshot saved to {target}[/green] ({len(data)} bytes)")


@app.command("status")
def status(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Show whether the recorder is running and its configuration."""
    try:
        with _client(host, port, prefix) as client:
            data = client.status()
    except (APIResponseError, httpx.HTTPError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)
    _print_status(data)


@app.command("start")
def start(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Start the flight recorder."""
    try:
        with _client(host, port, prefix) as client:
            client.start()
    except (APIResponseError, httpx.HTTPError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)
    console.print("[green]Flight recorder started successfully![/green]")


@app.command("stop")
def stop(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Stop the flight recorder."""
    try:
        with _client(host, port, prefix) as client:
            client.stop()
    except (APIResponseError, httpx.HTTPError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)
    console.print("[green]Flight recorder stopped successfully![/green]")


@app.command("update")
def update(
    period: str | None = typer.Option(None, help="New period, e.g. 2s, 500ms, 1m."),
    size: str | None = typer.Option(None, help="New size, e.g. 128MB, 512KB, 4096."),
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Change the recorder period and/or size."""
    if period is None and size is None:
        console.print("[red]Nothing to update: pass --period and/or --size.[/red]")
        raise typer.Exit(1)
    try:
        with _client(host, port, prefix) as client:
            client.update(period=period, size=size)
    except (APIResponseError, httpx.HTTPError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)
    console.print("[green]Flight recorder configuration updated successfully![/green]")


@app.command("snapshot")
def snapshot(
    output: Path | None = typer.Option(None, "--output", "-o", help="File to write."),
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Download a snapshot of the recorder ring."""
    try:
        with _client(host, port, prefix) as client:
            _save_snapshot(client, output)
    except APIResponseError as exc:
        hint = " (retry shortly)" if exc.retryable else ""
        console.print(f"[red]Error: {exc}{hint}[/red]")
        raise typer.Exit(1)
    except (httpx.HTTPError, OSError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)


@app.command("console")
def interactive(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
    prefix: str = typer.Option(DEFAULT_PREFIX),
) -> None:
    """Interactive prompt for driving the recorder."""
    console.print(_HELP)
    with _client(host, port, prefix) as client:
        while True:
            try:
                command = Prompt.ask(">", default="", show_default=False).strip().lower()
            except EOFError:
                break

            try:
                if command in ("s", "status"):
                    _print_status(client.status())
                elif command in ("1", "start"):
                    client.start()
                    console.print("Flight recorder started successfully!")
                elif command in ("2", "stop"):
                    client.stop()
                    console.print("Flight recorder stopped successfully!")
                elif command in ("3", "snapshot"):
                    _save_snapshot(client, None)
                elif command in ("4", "update"):
                    new_period = Prompt.ask("New period (e.g. 2s, Enter to skip)", default="").strip()
                    new_size = Prompt.ask("New size (e.g. 128MB, Enter to skip)", default="").strip()
                    if not new_period and not new_size:
                        console.print("Nothing to update.")
                        continue
                    client.update(period=new_period or None, size=new_size or None)
                    console.print("Flight recorder configuration updated successfully!")
                elif command in ("h", "help"):
                    console.print(_HELP)
                elif command in ("q", "quit", "exit"):
                    console.print("Shutting down...")
                    break
                elif command == "":
                    continue
                else:
                    console.print(f"Unknown command: {command}. Type 'h' for help.")
            except (APIResponseError, httpx.HTTPError, OSError) as exc:
                console.print(f"[red]Error: {exc}[/red]")
