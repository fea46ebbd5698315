"""GET /health — liveness endpoint with the recorder's enabled flag."""

from __future__ import annotations

import time

from fastapi import APIRouter

from flight_recorder import __version__
from flight_recorder.api.dependencies import ServiceDep
from flight_recorder.api.schemas import HealthResponse

router = APIRouter(tags=["health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Daemon health check")
def health(service: ServiceDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        recorder_enabled=service.status().enabled,
    )
