from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from copilot_notify.domain.entities.cookie import Cookie
from copilot_notify.domain.entities.credential_set import CredentialSet
from copilot_notify.domain.value_objects.web_domain import WebDomain
from copilot_notify.infrastructure.adapters.browser.playwright_surface import cookie_from_playwright
from tests.unit._fakes import NOW, PROVIDER, cookie


def test_web_domain_normalizes_and_covers_subdomains():
    domain = WebDomain(" .Example-Provider.COM ")
    assert domain == "example-provider.com"
    assert domain.covers("example-provider.com")
    assert domain.covers("api.example-provider.com")
    assert not domain.covers("notexample-provider.com")
    assert not domain.covers("example-provider.com.evil.example")


def test_web_domain_rejects_empty():
    with pytest.raises(AssertionError):
        WebDomain(" . ")


def test_cookie_expiry_boundary():
    c = cookie("session_id", expires=NOW)
    assert c.is_expired(NOW)
    assert not c.is_expired(NOW - timedelta(seconds=1))
    assert not cookie("session_id").is_expired(NOW + timedelta(days=3650))


def test_cookie_repr_hides_value():
    assert "s3cret" not in repr(cookie("session_id", "s3cret"))
    assert "s3cret" not in repr(CredentialSet(PROVIDER.web_domain, [cookie("session_id", "s3cret")]))


def test_cookie_header_respects_path_and_secure_flag():
    jar = CredentialSet(
        PROVIDER.web_domain,
        [
            Cookie("a", "1", "example-provider.com"),
            Cookie("b", "2", "example-provider.com", path="/api"),
            Cookie("c", "3", "example-provider.com", path="/settings"),
            Cookie("d", "4", "example-provider.com", secure=False),
            Cookie("e", "5", "other.example-provider.com"),
        ],
    )
    assert jar.cookie_header("https://example-provider.com/api/entitlement") == "a=1; b=2; d=4"
    assert jar.cookie_header("http://example-provider.com/api/entitlement") == "d=4"


def test_later_cookie_with_same_name_wins():
    jar = CredentialSet(PROVIDER.web_domain, [cookie("session_id", "old"), cookie("session_id", "new")])
    assert len(jar) == 1
    assert jar["session_id"].value == "new"


def test_playwright_cookie_conversion():
    persistent = cookie_from_playwright(
        {"name": "user_session", "value": "v", "domain": "github.com", "path": "/", "expires": 1767225600.0, "secure": True}
    )
    assert persistent.expires == datetime(2026, 1, 1, tzinfo=UTC)
    assert persistent.secure

    session = cookie_from_playwright({"name": "_gh_sess", "value": "v", "domain": ".github.com", "expires": -1})
    assert session.expires is None
    assert session.path == "/"
    assert session.belongs_to(WebDomain("github.com"))
