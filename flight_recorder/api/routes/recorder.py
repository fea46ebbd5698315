"""API routes for the flight recorder control service.

REST endpoints (mounted under ``server.route_prefix``, default ``/recorder``)::

    GET   {prefix}/status    — enabled flag + desired period / size
    POST  {prefix}/start     — start recording
    POST  {prefix}/stop      — stop recording
    POST  {prefix}/update    — change period and/or size
    GET   {prefix}/snapshot  — export the ring as application/octet-stream

Handlers are plain ``def`` so the blocking service lock is taken on
FastAPI's threadpool, never on the event loop.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Response

from flight_recorder.api.dependencies import ServiceDep
from flight_recorder.api.schemas import (
    ErrorResponse,
    MessageResponse,
    StatusResponse,
    UpdateRequest,
)

router = APIRouter(tags=["recorder"])

_CONFLICT = {409: {"model": ErrorResponse, "description": "Recorder is in the wrong state."}}


@router.get("/status", response_model=StatusResponse, summary="Recorder status")
def get_status(service: ServiceDep) -> StatusResponse:
    return StatusResponse.from_view(service.status())


@router.post(
    "/start",
    response_model=MessageResponse,
    responses={**_CONFLICT, 500: {"model": ErrorResponse}},
    summary="Start the flight recorder",
)
def start_recorder(service: ServiceDep) -> MessageResponse:
    service.start()
    return MessageResponse(message="Flight recorder started")


@router.post(
    "/stop",
    response_model=MessageResponse,
    responses={**_CONFLICT, 500: {"model": ErrorResponse}},
    summary="Stop the flight recorder",
)
def stop_recorder(service: ServiceDep) -> MessageResponse:
    service.stop()
    return MessageResponse(message="Flight recorder stopped")


@router.post(
    "/update",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Update period and/or size",
)
def update_recorder(body: UpdateRequest, service: ServiceDep) -> MessageResponse:
    service.update(body.to_partial())
    return MessageResponse(message="Flight recorder configuration updated")


@router.get(
    "/snapshot",
    response_class=Response,
    responses={
        200: {"content": {"application/octet-stream": {}}, "description": "Opaque trace bytes."},
        **_CONFLICT,
        503: {"model": ErrorResponse, "description": "Another snapshot is in progress; retry."},
    },
    summary="Export a snapshot of the recorder ring",
)
def get_snapshot(service: ServiceDep) -> Response:
    data = service.snapshot()
    filename = f"snapshot_{int(time.time())}.trace"
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
