from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from urllib.parse import urlsplit

from copilot_notify.domain.entities.cookie import Cookie
from copilot_notify.domain.value_objects.web_domain import WebDomain


class CredentialSet(Mapping[str, Cookie]):
    """Cookie name -> Cookie for a single web domain.

    Built wholesale from whatever the browser surface or the store hands over;
    a later cookie with the same name replaces an earlier one.
    """

    def __init__(self, domain: WebDomain, cookies: Iterable[Cookie] = ()) -> None:
        self.domain = domain
        self._cookies: dict[str, Cookie] = {}
        for c in cookies:
            if c.belongs_to(domain):
                self._cookies[c.name] = c

    def __getitem__(self, name: str) -> Cookie:
        return self._cookies[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __repr__(self) -> str:
        return f"CredentialSet(domain={self.domain!r}, names={sorted(self._cookies)!r})"

    def valid_at(self, now: datetime) -> "CredentialSet":
        return CredentialSet(self.domain, (c for c in self._cookies.values() if not c.is_expired(now)))

    def cookie_header(self, url: str) -> str:
        parts = urlsplit(url)
        host = parts.hostname or ""
        path = parts.path or "/"
        pairs = [
            f"{c.name}={c.value}"
            for c in self._cookies.values()
            if c.matches(host, path) and (c.secure is False or parts.scheme == "https")
        ]
        return "; ".join(pairs)
