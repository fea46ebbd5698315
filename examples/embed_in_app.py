#!/usr/bin/env python3
"""Flight Recorder — mounting the recorder endpoints in an existing app.

The host application keeps its own routes; the recorder endpoints are added
under a debug prefix and the recorder is stopped when the app shuts down.

  GET  /                              host route
  GET  /health                        host route
  GET  /api/v1/debug/flight/status    recorder status
  POST /api/v1/debug/flight/start     ...

Usage:
  python examples/embed_in_app.py
  python examples/embed_in_app.py --port 8080 --prefix /debug/flight

Then, from another shell:
  flight-recorder recorder start --port 8080 --prefix /debug/flight
  flight-recorder recorder snapshot --port 8080 --prefix /debug/flight
"""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from flight_recorder import ControlService
from flight_recorder.api.server import register_recorder
from flight_recorder.exceptions import NotRunningError
from flight_recorder.logging import configure_logging, get_logger
from flight_recorder.recorder import LogRingRecorder

log = get_logger("embed_in_app")


def build_app(prefix: str) -> FastAPI:
    service = ControlService(recorder=LogRingRecorder())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            service.stop()
        except NotRunningError:
            return
        log.info("recorder_stopped_on_shutdown")

    app = FastAPI(title="Host application", lifespan=lifespan)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Hello, World!"}

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "OK"}

    register_recorder(app, service, prefix=prefix)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Flight Recorder embedding example")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument(
        "--prefix",
        default="/api/v1/debug/flight",
        help="Path prefix for the recorder endpoints (default: /api/v1/debug/flight)",
    )
    args = parser.parse_args()

    configure_logging(level="info")
    log.info("server_starting", host=args.host, port=args.port, prefix=args.prefix)
    uvicorn.run(build_app(args.prefix), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
