from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/sign-in")
async def sign_in(request: Request) -> dict[str, str | int | None]:  # type: ignore[misc]
    # Opens the sign-in window on this machine and waits for it to finish
    controller = request.app.state.services.controller
    result = await controller.sign_in()
    return {
        "result": result.status.value,
        "message": result.message or None,
        "cookies": len(result.credentials) if result.credentials else 0,
        "status": controller.last_status,
    }


@router.post("/sign-out")
async def sign_out(request: Request) -> dict[str, str]:  # type: ignore[misc]
    controller = request.app.state.services.controller
    await controller.sign_out()
    return {"status": controller.last_status}
