"""Closed result vocabulary shared by the usage client, the authenticator and the
polling controller. Every downstream display state is derived from these."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from copilot_notify.domain.entities.credential_set import CredentialSet
from copilot_notify.domain.entities.usage_snapshot import UsageSnapshot


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    NOT_AUTHENTICATED = "not_authenticated"
    AUTH_EXPIRED = "auth_expired"
    TRANSIENT_NETWORK_ERROR = "transient_network_error"
    PARSE_ERROR = "parse_error"
    UNKNOWN_ERROR = "unknown_error"


class NetworkErrorKind(str, Enum):
    OFFLINE = "offline"
    DNS_FAILURE = "dns-failure"
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection-refused"
    TLS_FAILURE = "tls-failure"


@dataclass(frozen=True)
class PollOutcome:
    kind: OutcomeKind
    snapshot: UsageSnapshot | None = None
    network_error: NetworkErrorKind | None = None
    status_code: int | None = None
    detail: str = ""

    @classmethod
    def success(cls, snapshot: UsageSnapshot) -> "PollOutcome":
        return cls(OutcomeKind.SUCCESS, snapshot=snapshot)

    @classmethod
    def not_authenticated(cls) -> "PollOutcome":
        return cls(OutcomeKind.NOT_AUTHENTICATED, detail="no session cookie stored")

    @classmethod
    def auth_expired(cls, status_code: int) -> "PollOutcome":
        return cls(OutcomeKind.AUTH_EXPIRED, status_code=status_code)

    @classmethod
    def transient(cls, kind: NetworkErrorKind, detail: str = "") -> "PollOutcome":
        return cls(OutcomeKind.TRANSIENT_NETWORK_ERROR, network_error=kind, detail=detail)

    @classmethod
    def parse_error(cls, detail: str, status_code: int | None = None) -> "PollOutcome":
        return cls(OutcomeKind.PARSE_ERROR, status_code=status_code, detail=detail)

    @classmethod
    def unknown_error(cls, status_code: int | None = None, detail: str = "") -> "PollOutcome":
        return cls(OutcomeKind.UNKNOWN_ERROR, status_code=status_code, detail=detail)

    def as_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "used_percentage": self.snapshot.used_percentage if self.snapshot else None,
            "network_error": self.network_error.value if self.network_error else None,
            "status_code": self.status_code,
            "detail": self.detail,
        }


class AuthStatus(str, Enum):
    SUCCESS = "success"
    USER_CANCELLED = "user_cancelled"
    EXTRACTION_FAILED = "extraction_failed"
    ALREADY_IN_PROGRESS = "already_in_progress"


@dataclass(frozen=True)
class AuthResult:
    status: AuthStatus
    credentials: CredentialSet | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is AuthStatus.SUCCESS
