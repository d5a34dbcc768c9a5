from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry

from copilot_notify.application.ports.status_sink_port import StatusSinkPort
from copilot_notify.application.use_cases.authenticate_session import SessionAuthenticator
from copilot_notify.application.use_cases.poll_usage import PollingController
from copilot_notify.config import USER_AGENT, Settings
from copilot_notify.infrastructure.adapters.browser.playwright_surface import PlaywrightBrowserSurface
from copilot_notify.infrastructure.adapters.credentials.cookie_store import CookieCredentialStore
from copilot_notify.infrastructure.adapters.credentials.keyring_backend import KeyringSecretBackend
from copilot_notify.infrastructure.adapters.github.usage_client import UsageClient
from copilot_notify.infrastructure.adapters.http.httpx_client import HttpxClient
from copilot_notify.infrastructure.adapters.metrics.prometheus_recorder import PrometheusOutcomeRecorder


@dataclass
class Services:
    controller: PollingController
    http: HttpxClient
    registry: CollectorRegistry

    async def aclose(self) -> None:
        await self.controller.shutdown()
        await self.http.aclose()


def build_services(settings: Settings, sink: StatusSinkPort) -> Services:
    """One controller per process, with the real keyring, httpx and Playwright adapters."""
    provider = settings.provider
    store = CookieCredentialStore(
        KeyringSecretBackend(settings.keyring_service, settings.keyring_account),
        domain=provider.web_domain,
        session_cookie_name=provider.session_cookie_name,
    )
    http = HttpxClient(
        timeout=settings.http_timeout,
        user_agent=USER_AGENT,
        retry_attempts=settings.http_retry_attempts,
    )
    authenticator = SessionAuthenticator(
        lambda: PlaywrightBrowserSurface(user_agent=USER_AGENT),
        store,
        provider,
    )
    registry = CollectorRegistry()
    controller = PollingController(
        UsageClient(http, store, provider),
        store,
        authenticator,
        sink,
        interval=settings.poll_interval_seconds,
        recorder=PrometheusOutcomeRecorder(registry),
    )
    return Services(controller=controller, http=http, registry=registry)
