from __future__ import annotations

import logging

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from copilot_notify.application.ports.secret_backend_port import SecretBackendError, SecretBackendPort

log = logging.getLogger(__name__)


class KeyringSecretBackend(SecretBackendPort):
    """Secret entry in the platform credential vault (macOS Keychain, Secret Service,
    Windows Credential Locker) addressed by a service/account pair.

    Args:
        service (str): Service name of the entry.
        account (str): Account name of the entry.
        backend (KeyringBackend | None, optional): Explicit keyring backend. Defaults to
            the one ``keyring`` resolves for the platform.
    """

    def __init__(self, service: str, account: str, backend: KeyringBackend | None = None) -> None:
        self.service = service
        self.account = account
        self._backend = backend

    @property
    def _keyring(self) -> KeyringBackend:
        return self._backend or keyring.get_keyring()

    def read(self) -> str | None:
        try:
            return self._keyring.get_password(self.service, self.account)
        except KeyringError as e:
            raise SecretBackendError(f"keyring read failed: {e}") from e

    def write(self, blob: str) -> None:
        try:
            self._keyring.set_password(self.service, self.account, blob)
        except KeyringError as e:
            raise SecretBackendError(f"keyring write failed: {e}") from e

    def delete(self) -> None:
        try:
            self._keyring.delete_password(self.service, self.account)
        except PasswordDeleteError:
            log.debug("No keyring entry %s/%s to delete", self.service, self.account)
        except KeyringError as e:
            raise SecretBackendError(f"keyring delete failed: {e}") from e
