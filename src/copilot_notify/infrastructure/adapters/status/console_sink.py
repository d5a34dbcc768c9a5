from __future__ import annotations

from datetime import datetime

import typer

from copilot_notify.application.ports.status_sink_port import StatusSinkPort


class ConsoleStatusSink(StatusSinkPort):
    def __init__(self, prefix: str = "Copilot") -> None:
        self.prefix = prefix

    def publish(self, text: str) -> None:
        typer.echo(f"{datetime.now():%H:%M:%S} {self.prefix}: {text}")
