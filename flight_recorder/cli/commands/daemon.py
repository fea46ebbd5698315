"""CLI — Daemon management commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

app = typer.Typer(help="Run and inspect the flight recorder daemon.")
console = Console()


@app.command("start")
def start(
    host: Annotated[str | None, typer.Option(help="Host to bind to.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to listen on.")] = None,
    prefix: Annotated[
        str | None, typer.Option(help="Path prefix for the recorder endpoints.")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
    ] = None,
    log_level: str = typer.Option("info", help="Log level."),
) -> None:
    """Start the flight recorder daemon."""
    from flight_recorder.api.server import create_app
    from flight_recorder.config import ServerConfig, Settings

    settings = Settings.load(config_file=config)
    overrides = {
        key: value
        for key, value in (("host", host), ("port", port), ("route_prefix", prefix))
        if value is not None
    }
    if overrides:
        # Re-validate so the prefix is normalised like a config-file value.
        settings.server = ServerConfig(**{**settings.server.model_dump(), **overrides})

    bind_host, bind_port = settings.server.host, settings.server.port
    console.print(f"[bold green]Starting flight recorder on {bind_host}:{bind_port}[/bold green]")
    console.print("Flight recorder endpoints:")
    for method, name in (
        ("GET ", "status"),
        ("POST", "start"),
        ("POST", "stop"),
        ("GET ", "snapshot"),
        ("POST", "update"),
    ):
        console.print(f"  {method} {settings.server.route_prefix}/{name}")

    app_instance = create_app(settings=settings)

    uvicorn.run(
        app_instance,
        host=bind_host,
        port=bind_port,
        log_level=log_level,
    )


@app.command("status")
def status(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8083),
) -> None:
    """Check daemon health."""
    import httpx

    try:
        resp = httpx.get(f"http://{host}:{port}/health", timeout=5.0)
        data = resp.json()
        table = Table(title="Flight Recorder Daemon")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for k, v in data.items():
            table.add_row(str(k), str(v))
        console.print(table)
    except Exception as exc:
        console.print(f"[red]Daemon unreachable: {exc}[/red]")
        raise typer.Exit(1)
