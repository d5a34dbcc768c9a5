from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from copilot_notify.domain.value_objects.web_domain import WebDomain


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    domain: str
    path: str = "/"
    expires: datetime | None = None  # None = session-scoped
    secure: bool = True

    def belongs_to(self, domain: WebDomain) -> bool:
        return domain.covers(self.domain)

    def is_expired(self, now: datetime) -> bool:
        if self.expires is None:
            return False
        return self.expires <= now

    def matches(self, host: str, path: str) -> bool:
        """Domain/path match in the RFC 6265 sense (host-only flag not tracked)."""
        if not WebDomain(self.domain).covers(host):
            return False
        cookie_path = self.path or "/"
        if path == cookie_path or cookie_path == "/":
            return True
        return path.startswith(cookie_path.rstrip("/") + "/")

    def __repr__(self) -> str:
        # never includes the value
        return f"Cookie(name={self.name!r}, domain={self.domain!r}, expires={self.expires!r})"
