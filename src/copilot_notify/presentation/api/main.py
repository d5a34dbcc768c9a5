from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.requests import Request
from starlette.responses import Response

from copilot_notify.config import APP_VERSION, settings
from copilot_notify.infrastructure.adapters.status.memory_sink import MemoryStatusSink
from copilot_notify.logging_config import configure_logging
from copilot_notify.presentation.api.routes.auth import router as auth_router
from copilot_notify.presentation.api.routes.health import router as health_router
from copilot_notify.presentation.api.routes.usage import router as usage_router
from copilot_notify.presentation.wiring import Services, build_services


def _default_services(sink: MemoryStatusSink) -> Services:
    return build_services(settings, sink)


def create_app(services_factory: Callable[[MemoryStatusSink], Services] = _default_services) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sink = MemoryStatusSink()
        services = services_factory(sink)
        app.state.sink = sink
        app.state.services = services
        await services.controller.start()
        try:
            yield
        finally:
            await services.aclose()

    app = FastAPI(title="Copilot Notify", version=APP_VERSION, lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(usage_router)
    app.include_router(auth_router)

    @app.get("/metrics")
    def metrics(request: Request) -> Response:  # type: ignore[misc]
        data = generate_latest(request.app.state.services.registry)
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


configure_logging(settings)
app = create_app()
