"""Flight Recorder — remote control over a continuous-sampling trace recorder.

A flight recorder keeps a bounded-memory ring of recent trace events that can
be exported on demand.  This package wraps one recorder in a concurrency-safe
control service and exposes it over HTTP and a CLI.

Architecture layers (bottom to top):
    1. Recorder  — capability ABC + default log-ring implementation
    2. Codec     — duration / byte-size wire formats
    3. Service   — ControlService (RW-locked state machine over the recorder)
    4. API       — FastAPI router, middleware, error mapping
    5. Client/CLI — httpx clients, typer commands
"""

__version__ = "0.1.0"
__author__ = "Flight Recorder Contributors"
__license__ = "Apache-2.0"

from flight_recorder.service import (
    Configuration,
    ControlService,
    PartialConfiguration,
    StatusView,
)

__all__ = [
    "__version__",
    "Configuration",
    "ControlService",
    "PartialConfiguration",
    "StatusView",
]
