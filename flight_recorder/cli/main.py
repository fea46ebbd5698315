"""Flight Recorder CLI — Entry point.

Usage:
    flight-recorder daemon start [--host] [--port] [--prefix] [--config]
    flight-recorder daemon status
    flight-recorder recorder status
    flight-recorder recorder start
    flight-recorder recorder stop
    flight-recorder recorder update --period 2s --size 128MB
    flight-recorder recorder snapshot [-o FILE]
    flight-recorder recorder console
"""

from __future__ import annotations

import typer

from flight_recorder.cli.commands import daemon, recorder

app = typer.Typer(
    name="flight-recorder",
    help="Flight Recorder — remote control over a continuous-sampling trace recorder.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

app.add_typer(daemon.app, name="daemon")
app.add_typer(recorder.app, name="recorder")


@app.callback()
def main_callback() -> None:
    pass


if __name__ == "__main__":
    app()
