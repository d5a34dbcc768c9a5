from __future__ import annotations

import asyncio
import webbrowser

import typer
import uvicorn

from copilot_notify.application.ports.status_sink_port import StatusSinkPort
from copilot_notify.config import settings
from copilot_notify.domain.outcomes import AuthStatus
from copilot_notify.infrastructure.adapters.status.console_sink import ConsoleStatusSink
from copilot_notify.logging_config import configure_logging
from copilot_notify.presentation.wiring import Services, build_services

app = typer.Typer(help="GitHub Copilot premium request usage monitor")


def _services(sink: StatusSinkPort | None = None) -> Services:
    configure_logging(settings)
    return build_services(settings, sink or ConsoleStatusSink())


async def _run(sign_in_first: bool) -> None:
    services = _services()
    try:
        if sign_in_first:
            await services.controller.sign_in()
        else:
            await services.controller.start()
        # Timer-driven cycles run in the background until interrupted
        await asyncio.Event().wait()
    finally:
        await services.aclose()


@app.command()
def run(sign_in: bool = typer.Option(False, "--sign-in", help="Open the sign-in window first")) -> None:
    """Poll usage every interval and print each status until Ctrl+C."""
    try:
        asyncio.run(_run(sign_in))
    except KeyboardInterrupt:
        typer.echo("Bye")


@app.command()
def refresh() -> None:
    """Run one usage cycle and print the result."""

    async def once() -> None:
        services = _services()
        try:
            await services.controller.start()
        finally:
            await services.aclose()

    asyncio.run(once())


@app.command("sign-in")
def sign_in() -> None:
    """Sign in through a browser window and store the session."""

    async def flow() -> AuthStatus:
        services = _services()
        try:
            return (await services.controller.sign_in()).status
        finally:
            await services.aclose()

    status = asyncio.run(flow())
    if status is not AuthStatus.SUCCESS:
        raise typer.Exit(code=1)


@app.command("sign-out")
def sign_out() -> None:
    """Forget the stored session."""

    async def flow() -> None:
        services = _services()
        try:
            await services.controller.sign_out()
        finally:
            await services.aclose()

    asyncio.run(flow())


@app.command("open-settings")
def open_settings() -> None:
    """Open the provider's Copilot settings page in the default browser."""
    webbrowser.open(settings.provider.settings_url)


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, "--host"),
    port: int = typer.Option(settings.api_port, "--port"),
) -> None:
    """Serve the local control API (status, refresh, sign-in, sign-out, metrics)."""
    uvicorn.run("copilot_notify.presentation.api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
