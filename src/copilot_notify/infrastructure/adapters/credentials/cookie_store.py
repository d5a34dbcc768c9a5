from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from copilot_notify.application.ports.clock_port import Clock, SystemClock
from copilot_notify.application.ports.credential_store_port import CredentialStoreError, CredentialStorePort
from copilot_notify.application.ports.secret_backend_port import SecretBackendError, SecretBackendPort
from copilot_notify.domain.entities.cookie import Cookie
from copilot_notify.domain.entities.credential_set import CredentialSet
from copilot_notify.domain.value_objects.web_domain import WebDomain

log = logging.getLogger(__name__)

BLOB_VERSION = 1


class CookieCredentialStore(CredentialStorePort):
    """Session cookies for one web domain, kept as a single JSON blob in a secret backend.

    Expired cookies are filtered on read and dropped for good on the next save.
    Mutations are expected to come from a single owner; readers never see a torn
    blob because the backend entry is replaced as a whole.
    """

    def __init__(
        self,
        backend: SecretBackendPort,
        *,
        domain: WebDomain,
        session_cookie_name: str,
        clock: Clock | None = None,
    ) -> None:
        self.backend = backend
        self.domain = domain
        self.session_cookie_name = session_cookie_name
        self.clock = clock or SystemClock()

    def save(self, cookies: Iterable[Cookie]) -> None:
        new_set = CredentialSet(self.domain, cookies)
        if not new_set:
            log.debug("save: no cookies for %s, keeping stored set", self.domain)
            return
        blob = self._encode(new_set)
        try:
            previous = self.backend.read()
        except SecretBackendError as e:
            raise CredentialStoreError(str(e)) from e

        try:
            self.backend.delete()
            self.backend.write(blob)
        except SecretBackendError as e:
            log.error("save: rewrite failed (%s), restoring previous credential set", e)
            self._restore(previous)
            raise CredentialStoreError(str(e)) from e
        log.info("Saved %d cookies for %s", len(new_set), self.domain)

    def load(self) -> CredentialSet:
        empty = CredentialSet(self.domain)
        try:
            blob = self.backend.read()
        except SecretBackendError as e:
            log.warning("load: backend unreadable (%s), treating as signed out", e)
            return empty
        if not blob:
            return empty
        try:
            stored = self._decode(blob)
        except (ValueError, KeyError, TypeError, AttributeError, OverflowError, OSError) as e:
            log.warning("load: stored credential blob is corrupt (%s), treating as signed out", e)
            return empty
        return stored.valid_at(self.clock.now())

    def has_valid_session(self) -> bool:
        return self.session_cookie_name in self.load()

    def clear(self) -> None:
        try:
            self.backend.delete()
        except SecretBackendError as e:
            raise CredentialStoreError(str(e)) from e
        log.info("Cleared stored cookies for %s", self.domain)

    # ---------- Helpers ----------
    def _restore(self, previous: str | None) -> None:
        if previous is None:
            return
        try:
            self.backend.write(previous)
        except SecretBackendError:
            log.exception("save: could not restore previous credential set")

    def _encode(self, cookies: CredentialSet) -> str:
        return json.dumps(
            {
                "version": BLOB_VERSION,
                "domain": str(self.domain),
                "cookies": [
                    {
                        "name": c.name,
                        "value": c.value,
                        "domain": c.domain,
                        "path": c.path,
                        "expires": c.expires.timestamp() if c.expires else None,
                        "secure": c.secure,
                    }
                    for c in cookies.values()
                ],
            }
        )

    def _decode(self, blob: str) -> CredentialSet:
        data: dict[str, Any] = json.loads(blob)
        if data.get("version") != BLOB_VERSION:
            raise ValueError(f"unsupported blob version {data.get('version')!r}")
        cookies = []
        for item in data["cookies"]:
            expires = item.get("expires")
            cookies.append(
                Cookie(
                    name=str(item["name"]),
                    value=str(item["value"]),
                    domain=str(item["domain"]),
                    path=str(item.get("path") or "/"),
                    expires=datetime.fromtimestamp(float(expires), UTC) if expires is not None else None,
                    secure=bool(item.get("secure", True)),
                )
            )
        return CredentialSet(self.domain, cookies)
