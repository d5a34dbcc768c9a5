"""Short strings shown in the status surface. One mapping, one place."""
from __future__ import annotations

from copilot_notify.domain.outcomes import NetworkErrorKind, OutcomeKind, PollOutcome

NOT_SIGNED_IN = "Not Signed In"
SIGNING_IN = "Signing In..."
SESSION_EXPIRED = "Session Expired"
SIGNED_OUT = "Signed Out"
SIGN_IN_FAILED = "Sign In Failed"
GENERIC_ERROR = "Error"
PLACEHOLDER = "--"

NETWORK_TEXT: dict[NetworkErrorKind, str] = {
    NetworkErrorKind.OFFLINE: "Offline",
    NetworkErrorKind.TIMEOUT: "Timeout",
    NetworkErrorKind.DNS_FAILURE: "No Connection",
    NetworkErrorKind.CONNECTION_REFUSED: "No Connection",
    NetworkErrorKind.TLS_FAILURE: "Security Error",
}


def format_percentage(used: float) -> str:
    return f"{used:.0f}%"


def render_outcome(outcome: PollOutcome) -> str:
    if outcome.kind is OutcomeKind.SUCCESS and outcome.snapshot is not None:
        return format_percentage(outcome.snapshot.used_percentage)
    if outcome.kind is OutcomeKind.NOT_AUTHENTICATED:
        return NOT_SIGNED_IN
    if outcome.kind is OutcomeKind.AUTH_EXPIRED:
        return SESSION_EXPIRED
    if outcome.kind is OutcomeKind.TRANSIENT_NETWORK_ERROR and outcome.network_error is not None:
        return NETWORK_TEXT[outcome.network_error]
    return GENERIC_ERROR
