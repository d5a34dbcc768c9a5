from __future__ import annotations

import asyncio
import logging
from enum import Enum

from copilot_notify.application import status_text
from copilot_notify.application.ports.credential_store_port import CredentialStoreError, CredentialStorePort
from copilot_notify.application.ports.outcome_recorder_port import OutcomeRecorderPort
from copilot_notify.application.ports.status_sink_port import StatusSinkPort
from copilot_notify.application.ports.usage_client_port import UsageClientPort
from copilot_notify.application.use_cases.authenticate_session import SessionAuthenticator
from copilot_notify.domain.outcomes import AuthResult, AuthStatus, OutcomeKind, PollOutcome

log = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300.0

STOP_POLLING = frozenset({OutcomeKind.AUTH_EXPIRED, OutcomeKind.NOT_AUTHENTICATED})


class ControllerState(str, Enum):
    STOPPED = "stopped"
    CHECKING = "checking"
    FETCHING = "fetching"
    PUBLISHING = "publishing"
    IDLE = "idle"
    AWAITING_AUTH = "awaiting_auth"


class PollingController:
    """Owns the refresh timer and the displayed status for one signed-in user.

    All methods must be called from the event loop that owns the controller.
    Cycles are coalesced: while one fetch is in flight, further refresh requests
    wait for it and share its outcome.
    """

    def __init__(
        self,
        client: UsageClientPort,
        store: CredentialStorePort,
        authenticator: SessionAuthenticator,
        sink: StatusSinkPort,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        recorder: OutcomeRecorderPort | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.authenticator = authenticator
        self.sink = sink
        self.interval = interval
        self.recorder = recorder
        self.state = ControllerState.STOPPED
        self.last_status: str = status_text.PLACEHOLDER
        self.last_outcome: PollOutcome | None = None
        self._timer: asyncio.Task[None] | None = None
        self._cycle: asyncio.Task[PollOutcome] | None = None
        self._generation = 0
        self._cycle_generation = 0

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def start(self) -> PollOutcome | None:
        """Check the stored session, run a first cycle and arm the timer.

        Returns the first cycle's outcome, or None when signed out.
        """
        self._disarm()
        self.state = ControllerState.CHECKING
        if not await asyncio.to_thread(self.store.has_valid_session):
            log.info("No valid session stored, not polling")
            self.state = ControllerState.AWAITING_AUTH
            self._publish(status_text.NOT_SIGNED_IN)
            return None
        return await self.refresh()

    async def refresh(self) -> PollOutcome:
        """Run a cycle now, or join the one already running."""
        cycle = self._cycle
        if cycle is not None and not cycle.done() and self._cycle_generation != self._generation:
            # started before a sign-in/sign-out; let it drain so only one request is in flight
            await asyncio.wait({cycle})
            cycle = self._cycle
        if cycle is None or cycle.done():
            self._cycle_generation = self._generation
            cycle = self._cycle = asyncio.create_task(self._run_cycle(self._generation), name="usage-cycle")
        else:
            log.debug("Refresh requested while a cycle is running, joining it")
        return await asyncio.shield(cycle)

    async def sign_in(self) -> AuthResult:
        if self.authenticator.in_progress:
            return await self.authenticator.authenticate()
        self._publish(status_text.SIGNING_IN)
        result = await self.authenticator.authenticate()
        if result.status is AuthStatus.SUCCESS:
            log.info("Signed in with %d cookies", len(result.credentials or {}))
            self._generation += 1
            await self.start()
        elif result.status is not AuthStatus.ALREADY_IN_PROGRESS:
            log.warning("Sign-in ended with %s: %s", result.status.value, result.message)
            self._publish(status_text.SIGN_IN_FAILED)
        return result

    async def sign_out(self) -> None:
        self._disarm()
        self._generation += 1
        self.state = ControllerState.STOPPED
        try:
            await asyncio.to_thread(self.store.clear)
        except CredentialStoreError:
            log.exception("Clearing stored cookies failed")
            self._publish(status_text.GENERIC_ERROR)
            return
        self.last_outcome = None
        self._publish(status_text.SIGNED_OUT)

    async def shutdown(self) -> None:
        self._disarm()
        self._generation += 1
        if self._cycle is not None and not self._cycle.done():
            self._cycle.cancel()
            try:
                await self._cycle
            except asyncio.CancelledError:
                pass
        self.state = ControllerState.STOPPED

    # ---------- Cycle ----------
    async def _run_cycle(self, generation: int) -> PollOutcome:
        self.state = ControllerState.FETCHING
        try:
            outcome = await self.client.fetch_usage()
        except Exception as e:
            log.exception("Usage fetch raised")
            outcome = PollOutcome.unknown_error(detail=f"{type(e).__name__}: {e}")

        log.info(
            "Poll outcome kind=%s network=%s status=%s detail=%s",
            outcome.kind.value,
            outcome.network_error.value if outcome.network_error else "-",
            outcome.status_code if outcome.status_code is not None else "-",
            outcome.detail or "-",
        )
        if self.recorder is not None:
            self.recorder.record(outcome)

        if generation != self._generation:
            log.info("Discarding outcome of a cycle started before sign-out")
            return outcome

        self.state = ControllerState.PUBLISHING
        self.last_outcome = outcome
        self._publish(status_text.render_outcome(outcome))

        if outcome.kind in STOP_POLLING:
            self._disarm()
            self.state = ControllerState.AWAITING_AUTH
        else:
            self._arm()
            self.state = ControllerState.IDLE
        return outcome

    # ---------- Timer ----------
    def _arm(self) -> None:
        if self.timer_armed:
            return
        self._timer = asyncio.create_task(self._tick(), name="usage-timer")
        log.debug("Polling every %.0fs", self.interval)

    def _disarm(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.refresh()

    def _publish(self, text: str) -> None:
        self.last_status = text
        try:
            self.sink.publish(text)
        except Exception:
            log.exception("Status sink rejected %r", text)
