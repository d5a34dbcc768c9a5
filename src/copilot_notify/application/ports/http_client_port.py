from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol
import json

from copilot_notify.domain.outcomes import NetworkErrorKind


class HttpResponse:
    def __init__(
        self,
        status_code: int,
        text: str,
        url: str,
        headers: Mapping[str, str],
        *,
        raw: Any | None = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = dict(headers)
        self._raw = raw

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._raw is not None and hasattr(self._raw, "json"):
            return self._raw.json()
        return json.loads(self.text)


class HttpTransportError(Exception):
    """The request never produced an HTTP response."""

    def __init__(self, kind: NetworkErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class HttpBodyError(Exception):
    """A response arrived but its body could not be decoded."""

    def __init__(self, status_code: int | None, message: str = "") -> None:
        super().__init__(message or "undecodable body")
        self.status_code = status_code


class HttpClientPort(Protocol):
    """Minimal async HTTP client abstraction.

    Implementations raise ``HttpTransportError`` for transport failures,
    ``HttpBodyError`` for bodies that cannot be decoded, and
    return every HTTP status (including 4xx/5xx) as a response.
    """

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> HttpResponse: ...
    async def aclose(self) -> None: ...
