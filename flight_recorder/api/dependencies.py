"""API layer — FastAPI dependency injection.

The control service is created once at startup, attached to ``app.state``
and injected via FastAPI's dependency system.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from flight_recorder.service import ControlService


def get_control_service(request: Request) -> ControlService:
    service = getattr(request.app.state, "control_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Flight recorder service is not configured on this application.",
        )
    return service  # type: ignore[no-any-return]


# Shorthand type alias for route signatures.
ServiceDep = Annotated[ControlService, Depends(get_control_service)]
