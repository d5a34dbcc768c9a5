from typing import Protocol


class StatusSinkPort(Protocol):
    def publish(self, text: str) -> None: ...
