from __future__ import annotations

from typing import Protocol


class SecretBackendError(Exception):
    pass


class SecretBackendPort(Protocol):
    """One opaque secret entry, keyed by a fixed service/account pair."""

    def read(self) -> str | None:
        """Returns the stored blob, or None if nothing is stored. Raises SecretBackendError."""
        ...

    def write(self, blob: str) -> None: ...

    def delete(self) -> None:
        """Removes the entry. Must not raise if nothing existed."""
        ...
