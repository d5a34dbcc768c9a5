from __future__ import annotations

import asyncio
import logging

from copilot_notify.application.ports.credential_store_port import CredentialStorePort
from copilot_notify.application.ports.http_client_port import HttpBodyError, HttpClientPort, HttpTransportError
from copilot_notify.application.ports.usage_client_port import UsageClientPort
from copilot_notify.config import ProviderProfile
from copilot_notify.domain.outcomes import PollOutcome
from copilot_notify.infrastructure.adapters.github.entitlement_parser import EntitlementParseError, parse_entitlement

log = logging.getLogger(__name__)

AUTH_REJECTED_STATUSES = (401, 403)


class UsageClient(UsageClientPort):
    """Reads the signed-in user's premium-request quota with the stored session cookies.

    Every path ends in a PollOutcome; nothing is raised to the caller. Cookies are
    never cleared here, even on 401/403.
    """

    def __init__(self, http: HttpClientPort, store: CredentialStorePort, provider: ProviderProfile) -> None:
        self.http = http
        self.store = store
        self.provider = provider

    async def fetch_usage(self) -> PollOutcome:
        try:
            return await self._fetch()
        except Exception as e:
            log.exception("Usage fetch failed unexpectedly")
            return PollOutcome.unknown_error(detail=f"{type(e).__name__}: {e}")

    async def _fetch(self) -> PollOutcome:
        # keyring backends may block while the vault prompts for unlock
        cookies = await asyncio.to_thread(self.store.load)
        if self.provider.session_cookie_name not in cookies:
            return PollOutcome.not_authenticated()

        headers = {
            "Accept": "application/json",
            "Cookie": cookies.cookie_header(self.provider.quota_url),
        }
        log.debug("Requesting entitlement with %d cookies", len(cookies))
        try:
            resp = await self.http.get(self.provider.quota_url, headers=headers)
        except HttpTransportError as e:
            return PollOutcome.transient(e.kind, detail=type(e.__cause__).__name__ if e.__cause__ else "")
        except HttpBodyError as e:
            return PollOutcome.parse_error(f"body could not be decoded: {e}", e.status_code)

        if resp.status_code in AUTH_REJECTED_STATUSES:
            return PollOutcome.auth_expired(resp.status_code)
        if not resp.is_success:
            return PollOutcome.unknown_error(resp.status_code, detail=f"HTTP {resp.status_code}")

        try:
            snapshot = parse_entitlement(resp.json())
        except EntitlementParseError as e:
            return PollOutcome.parse_error(str(e), resp.status_code)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            return PollOutcome.parse_error(f"body is not JSON: {e}", resp.status_code)

        log.debug(
            "Premium requests %s/%s, used %.1f%%, resets %s",
            snapshot.remaining_interactions,
            snapshot.limit_interactions,
            snapshot.used_percentage,
            snapshot.reset_date,
        )
        return PollOutcome.success(snapshot)
