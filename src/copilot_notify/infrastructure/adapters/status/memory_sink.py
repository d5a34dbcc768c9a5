from __future__ import annotations

from collections import deque

from copilot_notify.application.ports.status_sink_port import StatusSinkPort


class MemoryStatusSink(StatusSinkPort):
    """Keeps the most recent statuses, oldest first, for ``GET /v1/usage/status``."""

    def __init__(self, keep: int = 20) -> None:
        self.history: deque[str] = deque(maxlen=keep)

    def publish(self, text: str) -> None:
        self.history.append(text)
