from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from copilot_notify.domain.value_objects.web_domain import WebDomain

# Load .env if present
load_dotenv()

APP_NAME = "copilot-notify"
APP_VERSION = "0.1.0"
USER_AGENT = f"{APP_NAME}/{APP_VERSION} (+https://github.com/settings/copilot)"


@dataclass(frozen=True)
class ProviderProfile:
    """Everything that ties the monitor to one quota provider."""

    web_domain: WebDomain
    login_url: str
    quota_url: str
    settings_url: str
    session_cookie_name: str
    allowed_hosts: frozenset[str]
    login_path_prefixes: tuple[str, ...] = ("/login", "/sessions")

    def is_allowed_host(self, host: str) -> bool:
        h = host.lower()
        return h in self.allowed_hosts or self.web_domain.covers(h)


GITHUB = ProviderProfile(
    web_domain=WebDomain("github.com"),
    login_url="https://github.com/login",
    quota_url="https://github.com/github-copilot/chat/entitlement",
    settings_url="https://github.com/settings/copilot/features",
    session_cookie_name="user_session",
    allowed_hosts=frozenset({"github.com", "github.githubassets.com", "avatars.githubusercontent.com"}),
)


@dataclass(frozen=True)
class Settings:
    poll_interval_seconds: float = float(os.getenv("COPILOT_NOTIFY_POLL_INTERVAL", "300"))
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))
    http_retry_attempts: int = int(os.getenv("HTTP_RETRY_ATTEMPTS", "2"))
    keyring_service: str = os.getenv("COPILOT_NOTIFY_KEYRING_SERVICE", APP_NAME)
    keyring_account: str = os.getenv("COPILOT_NOTIFY_KEYRING_ACCOUNT", "github-session-cookies")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("COPILOT_NOTIFY_LOG_FILE") or None
    api_host: str = os.getenv("COPILOT_NOTIFY_API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("COPILOT_NOTIFY_API_PORT", "8765"))
    provider: ProviderProfile = field(default=GITHUB)


settings = Settings()
