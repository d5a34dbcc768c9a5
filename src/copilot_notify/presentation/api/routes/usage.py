from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(prefix="/v1/usage", tags=["usage"])


@router.get("/status")
def status(request: Request) -> dict[str, Any]:  # type: ignore[misc]
    controller = request.app.state.services.controller
    outcome = controller.last_outcome
    return {
        "status": controller.last_status,
        "state": controller.state.value,
        "polling": controller.timer_armed,
        "outcome": outcome.as_dict() if outcome else None,
        "history": list(request.app.state.sink.history),
    }


@router.post("/refresh")
async def refresh(request: Request) -> dict[str, Any]:  # type: ignore[misc]
    controller = request.app.state.services.controller
    outcome = await controller.refresh()
    return {"status": controller.last_status, "outcome": outcome.as_dict()}
