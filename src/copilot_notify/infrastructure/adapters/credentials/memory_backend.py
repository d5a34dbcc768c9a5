from __future__ import annotations

from copilot_notify.application.ports.secret_backend_port import SecretBackendPort


class InMemorySecretBackend(SecretBackendPort):
    """Simple in-memory secret entry for development and tests. Not persistent."""

    def __init__(self, blob: str | None = None) -> None:
        self._blob = blob

    def read(self) -> str | None:
        return self._blob

    def write(self, blob: str) -> None:
        self._blob = blob

    def delete(self) -> None:
        self._blob = None
