from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from copilot_notify.domain.entities.cookie import Cookie
from copilot_notify.domain.entities.credential_set import CredentialSet


class CredentialStoreError(Exception):
    pass


class CredentialStorePort(Protocol):
    """Persistence for the provider's session cookies."""

    def save(self, cookies: Iterable[Cookie]) -> None:
        """Replace the stored set with the cookies that belong to the target domain.

        No-op when none belong. Raises CredentialStoreError on failure, leaving the
        previous set in place.
        """
        ...

    def load(self) -> CredentialSet:
        """Currently valid cookies; empty (never an error) when nothing usable is stored."""
        ...

    def has_valid_session(self) -> bool: ...

    def clear(self) -> None: ...
