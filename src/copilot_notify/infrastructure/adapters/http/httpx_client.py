from __future__ import annotations

import errno
import logging
import socket
import ssl
from typing import Mapping

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from copilot_notify.application.ports.http_client_port import (
    HttpBodyError,
    HttpClientPort,
    HttpResponse,
    HttpTransportError,
)
from copilot_notify.domain.outcomes import NetworkErrorKind

log = logging.getLogger(__name__)

RETRYABLE_KINDS = frozenset({NetworkErrorKind.TIMEOUT, NetworkErrorKind.OFFLINE})

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)
_TLS_MARKERS = ("certificate_verify_failed", "certificate verify failed", "ssl:", "tls", "handshake")
_REFUSED_MARKERS = ("connection refused", "errno 111", "errno 61", "winerror 10061")


def _cause_chain(exc: BaseException):
    """The exception, its causes, and the members of any exception group on the way."""
    seen: set[int] = set()
    stack: list[BaseException | None] = [exc]
    while stack:
        cur = stack.pop()
        if cur is None or id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        stack.append(cur.__cause__ or cur.__context__)
        if isinstance(cur, BaseExceptionGroup):
            stack.extend(reversed(cur.exceptions))


def _os_error_kind(exc: BaseException) -> NetworkErrorKind | None:
    if isinstance(exc, ssl.SSLError):
        return NetworkErrorKind.TLS_FAILURE
    if isinstance(exc, socket.gaierror):
        return NetworkErrorKind.DNS_FAILURE
    if isinstance(exc, ConnectionRefusedError):
        return NetworkErrorKind.CONNECTION_REFUSED
    if isinstance(exc, OSError) and exc.errno in (errno.ENETUNREACH, errno.EHOSTUNREACH, errno.ENETDOWN):
        return NetworkErrorKind.OFFLINE
    if isinstance(exc, BaseExceptionGroup):
        # one failed attempt per resolved address
        kinds = {_os_error_kind(e) for e in exc.exceptions}
        if len(kinds) == 1:
            return kinds.pop()
    return None


def classify_transport_error(exc: httpx.TransportError) -> NetworkErrorKind:
    """Map an httpx transport failure to the sub-kind shown to the user."""
    if isinstance(exc, httpx.TimeoutException):
        return NetworkErrorKind.TIMEOUT

    for cause in _cause_chain(exc):
        kind = _os_error_kind(cause)
        if kind is not None:
            return kind

    message = " ".join(str(c) for c in _cause_chain(exc)).lower()
    if isinstance(exc, httpx.ConnectError):
        if any(m in message for m in _DNS_MARKERS):
            return NetworkErrorKind.DNS_FAILURE
        if any(m in message for m in _REFUSED_MARKERS):
            return NetworkErrorKind.CONNECTION_REFUSED
        if any(m in message for m in _TLS_MARKERS):
            return NetworkErrorKind.TLS_FAILURE
    return NetworkErrorKind.OFFLINE


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, HttpTransportError) and exc.kind in RETRYABLE_KINDS


class HttpxClient(HttpClientPort):
    def __init__(
        self,
        timeout: float = 30.0,
        *,
        user_agent: str,
        retry_attempts: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """HTTP client adapter backed by a persistent httpx.AsyncClient.

        - Certificate chains are verified against the platform CA bundle on every request
        - Transport failures surface as HttpTransportError carrying a NetworkErrorKind
        - Timeouts and dropped connections are retried with jittered backoff

        Args:
            timeout (float, optional): Timeout for requests. Defaults to 30.0.
            user_agent (str): User-Agent header sent with every request.
            retry_attempts (int, optional): Total attempts for retryable failures. Defaults to 2.
            transport (httpx.AsyncBaseTransport | None, optional): Custom transport, for tests.
        """
        self._retry_attempts = max(1, retry_attempts)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            follow_redirects=False,
            transport=transport,
        )

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        """Gets the given URL.

        Args:
            url (str): URL to get.
            headers (Mapping[str, str] | None, optional): Headers to include. Defaults to None.

        Returns:
            HttpResponse: Response from the server, whatever its status.

        Raises:
            HttpTransportError: No response could be obtained.
            HttpBodyError: The response body could not be decoded.
        """
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential_jitter(initial=1, max=8),
            retry=retry_if_exception(_is_retryable),
        ):
            with attempt:
                return await self._get_once(url, headers)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _get_once(self, url: str, headers: Mapping[str, str] | None) -> HttpResponse:
        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.TransportError as e:
            kind = classify_transport_error(e)
            log.info("GET %s failed: %s (%s)", url, kind.value, type(e).__name__)
            raise HttpTransportError(kind, str(e)) from e
        except httpx.DecodingError as e:
            log.info("GET %s returned an undecodable body: %s", url, e)
            raise HttpBodyError(None, str(e)) from e
        return HttpResponse(resp.status_code, resp.text, str(resp.url), resp.headers, raw=resp)

    async def aclose(self) -> None:
        await self._client.aclose()
