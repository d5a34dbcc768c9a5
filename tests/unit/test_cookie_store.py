from __future__ import annotations

from datetime import timedelta

import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from copilot_notify.application.ports.credential_store_port import CredentialStoreError
from copilot_notify.infrastructure.adapters.credentials.keyring_backend import KeyringSecretBackend
from copilot_notify.infrastructure.adapters.credentials.memory_backend import InMemorySecretBackend
from tests.unit._fakes import NOW, FixedClock, FlakyBackend, cookie, make_store


class DictKeyring(KeyringBackend):
    priority = 1  # type: ignore[assignment]

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}
    def get_password(self, service, username):
        return self.entries.get((service, username))
    def set_password(self, service, username, password):
        self.entries[(service, username)] = password
    def delete_password(self, service, username):
        if (service, username) not in self.entries:
            raise PasswordDeleteError("not found")
        del self.entries[(service, username)]


class BrokenKeyring(DictKeyring):
    def get_password(self, service, username):
        raise KeyringError("locked")


def test_save_then_load_keeps_only_target_domain_and_unexpired():
    store = make_store()
    store.save([
        cookie("session_id", "abc123"),
        cookie("_octo", "x", domain=".example-provider.com"),
        cookie("tracker", "t", domain="evil.example"),
        cookie("lookalike", "l", domain="notexample-provider.com"),
        cookie("old", "o", expires=NOW - timedelta(seconds=1)),
        cookie("fresh", "f", domain="static.example-provider.com", expires=NOW + timedelta(hours=1)),
    ])
    loaded = store.load()
    assert set(loaded) == {"session_id", "_octo", "fresh"}
    assert loaded["session_id"].value == "abc123"


def test_load_on_empty_store_is_empty():
    assert len(make_store().load()) == 0


@pytest.mark.parametrize("blob", ["not json", "[]", '{"version": 1}', '{"version": 99, "cookies": []}', '{"version": 1, "cookies": [{"name": "x"}]}'])
def test_load_on_corrupt_blob_is_empty(blob):
    store = make_store(InMemorySecretBackend(blob))
    assert len(store.load()) == 0
    assert store.has_valid_session() is False


def test_load_when_backend_unreadable_is_empty():
    store = make_store(KeyringSecretBackend("svc", "acct", backend=BrokenKeyring()))
    assert len(store.load()) == 0


def test_has_valid_session_respects_expiry():
    backend = InMemorySecretBackend()
    early = make_store(backend, clock=FixedClock(NOW))
    early.save([cookie("session_id", "abc", expires=NOW + timedelta(minutes=5))])
    assert early.has_valid_session() is True

    later = make_store(backend, clock=FixedClock(NOW + timedelta(minutes=5)))
    assert later.has_valid_session() is False


def test_session_scoped_cookie_is_valid_until_cleared():
    store = make_store()
    store.save([cookie("session_id", "abc", expires=None)])
    assert store.has_valid_session() is True
    store.clear()
    assert store.has_valid_session() is False


def test_save_replaces_wholesale():
    store = make_store()
    store.save([cookie("session_id", "one"), cookie("extra", "e")])
    store.save([cookie("session_id", "two")])
    loaded = store.load()
    assert set(loaded) == {"session_id"}
    assert loaded["session_id"].value == "two"


def test_save_with_nothing_for_domain_is_a_noop():
    store = make_store()
    store.save([cookie("session_id", "keep")])
    store.save([cookie("other", "x", domain="elsewhere.test")])
    assert store.load()["session_id"].value == "keep"


def test_failed_rewrite_restores_previous_set():
    backend = FlakyBackend()
    store = make_store(backend)
    store.save([cookie("session_id", "old")])
    backend.fail_next_write = True
    with pytest.raises(CredentialStoreError):
        store.save([cookie("session_id", "new")])
    assert store.load()["session_id"].value == "old"


def test_clear_is_idempotent():
    store = make_store()
    store.clear()
    store.clear()
    assert len(store.load()) == 0


def test_keyring_backend_round_trip_and_idempotent_delete():
    ring = DictKeyring()
    store = make_store(KeyringSecretBackend("copilot-notify", "github-session-cookies", backend=ring))
    store.save([cookie("session_id", "abc123")])
    assert ("copilot-notify", "github-session-cookies") in ring.entries
    assert "abc123" in ring.entries[("copilot-notify", "github-session-cookies")]
    assert store.has_valid_session() is True
    store.clear()
    store.clear()
    assert ring.entries == {}
