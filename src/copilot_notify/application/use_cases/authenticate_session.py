from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar
from urllib.parse import urlsplit

from copilot_notify.application.ports.browser_surface_port import BrowserSurfacePort
from copilot_notify.application.ports.credential_store_port import CredentialStoreError, CredentialStorePort
from copilot_notify.config import ProviderProfile
from copilot_notify.domain.entities.credential_set import CredentialSet
from copilot_notify.domain.outcomes import AuthResult, AuthStatus

log = logging.getLogger(__name__)

T = TypeVar("T")


class AuthState(str, Enum):
    IDLE = "idle"
    BROWSER_OPEN = "browser_open"
    NAVIGATION_OBSERVED = "navigation_observed"
    COOKIES_EXTRACTED = "cookies_extracted"
    DONE = "done"
    USER_CANCELLED = "user_cancelled"
    EXTRACTION_FAILED = "extraction_failed"


class ResultSlot(Generic[T]):
    """Settled at most once; later settle() calls are ignored and return False."""

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, value: T) -> bool:
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    async def wait(self) -> T:
        return await asyncio.shield(self._future)


class NavigationRules:
    """Which hosts the sign-in window may visit, and which pages may mean 'signed in'."""

    def __init__(self, provider: ProviderProfile) -> None:
        self.provider = provider

    def allows(self, url: str) -> bool:
        parts = urlsplit(url)
        if parts.scheme != "https" or not parts.hostname:
            return False
        return self.provider.is_allowed_host(parts.hostname)

    def possibly_authenticated(self, url: str) -> bool:
        parts = urlsplit(url)
        if parts.scheme != "https" or not parts.hostname:
            return False
        if not self.provider.web_domain.covers(parts.hostname):
            return False
        path = parts.path or "/"
        return not any(path.startswith(prefix) for prefix in self.provider.login_path_prefixes)


class SessionAuthenticator:
    """Drives one interactive sign-in through an isolated browser window and
    captures the provider's session cookies.

    Flow:
      1) open a fresh window on the login page, navigation limited to the allow-list
      2) after each finished navigation to a non-login provider page, read the cookie jar
      3) once the session cookie shows up: persist, close the window, resolve SUCCESS

    Exactly one AuthResult is produced per attempt. A call made while another
    attempt is in flight is rejected with ALREADY_IN_PROGRESS.
    """

    def __init__(
        self,
        surface_factory: Callable[[], BrowserSurfacePort],
        store: CredentialStorePort,
        provider: ProviderProfile,
    ) -> None:
        self.surface_factory = surface_factory
        self.store = store
        self.provider = provider
        self.rules = NavigationRules(provider)
        self.state = AuthState.IDLE
        self._in_flight = False

    @property
    def in_progress(self) -> bool:
        return self._in_flight

    async def authenticate(self) -> AuthResult:
        if self._in_flight:
            log.info("Sign-in already in progress, rejecting second attempt")
            return AuthResult(AuthStatus.ALREADY_IN_PROGRESS, message="Sign-in already in progress")

        self._in_flight = True
        slot: ResultSlot[AuthResult] = ResultSlot()
        surface = self.surface_factory()
        try:
            self._transition(AuthState.BROWSER_OPEN)
            await surface.open(
                self.provider.login_url,
                allow_navigation=self._allow_navigation,
                on_navigation_finished=lambda url: self._on_navigation_finished(surface, slot, url),
                on_closed=lambda: self._on_closed(slot),
            )
            result = await slot.wait()
        except Exception as e:
            log.exception("Sign-in window failed")
            self._finish(slot, AuthState.EXTRACTION_FAILED, AuthResult(AuthStatus.EXTRACTION_FAILED, message=str(e)))
            result = await slot.wait()
        finally:
            try:
                await surface.close()
            except Exception:
                log.warning("Closing the sign-in window failed", exc_info=True)
            self._in_flight = False
        return result

    # ---------- Browser callbacks ----------
    def _allow_navigation(self, url: str) -> bool:
        allowed = self.rules.allows(url)
        if not allowed:
            log.warning("Blocked navigation to %s", urlsplit(url).hostname or url)
        return allowed

    async def _on_navigation_finished(
        self, surface: BrowserSurfacePort, slot: ResultSlot[AuthResult], url: str
    ) -> None:
        if slot.settled:
            return
        self._transition(AuthState.NAVIGATION_OBSERVED)
        if not self.rules.possibly_authenticated(url):
            log.debug("Navigated to %s, still on sign-in pages", urlsplit(url).path)
            return

        try:
            raw = await surface.cookies()
        except Exception as e:
            log.exception("Reading the browser cookie jar failed")
            self._finish(slot, AuthState.EXTRACTION_FAILED, AuthResult(AuthStatus.EXTRACTION_FAILED, message=str(e)))
            return

        extracted = CredentialSet(self.provider.web_domain, raw)
        log.info("Found %d %s cookies", len(extracted), self.provider.web_domain)
        if self.provider.session_cookie_name not in extracted:
            log.debug("No %s cookie yet, waiting for sign-in", self.provider.session_cookie_name)
            return
        if slot.settled:
            return
        self._transition(AuthState.COOKIES_EXTRACTED)

        try:
            self.store.save(extracted.values())
        except CredentialStoreError as e:
            log.error("Persisting session cookies failed: %s", e)
            self._finish(
                slot,
                AuthState.EXTRACTION_FAILED,
                AuthResult(AuthStatus.EXTRACTION_FAILED, message=f"Could not store session: {e}"),
            )
            return
        self._finish(slot, AuthState.DONE, AuthResult(AuthStatus.SUCCESS, credentials=extracted))

    def _on_closed(self, slot: ResultSlot[AuthResult]) -> None:
        self._finish(
            slot, AuthState.USER_CANCELLED, AuthResult(AuthStatus.USER_CANCELLED, message="Authentication was cancelled")
        )

    # ---------- Helpers ----------
    def _finish(self, slot: ResultSlot[AuthResult], state: AuthState, result: AuthResult) -> None:
        if slot.settle(result):
            self._transition(state)

    def _transition(self, state: AuthState) -> None:
        log.debug("Sign-in state %s -> %s", self.state.value, state.value)
        self.state = state
