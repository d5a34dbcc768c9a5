from __future__ import annotations

import asyncio

from copilot_notify.application.use_cases.authenticate_session import AuthState, NavigationRules, SessionAuthenticator
from copilot_notify.domain.outcomes import AuthStatus
from tests.unit._fakes import PROVIDER, FakeSurface, FlakyBackend, cookie, make_store

SIGNED_IN_JAR = [
    cookie("session_id", "abc123"),
    cookie("logged_in", "yes"),
    cookie("tracker", "t", domain="ads.elsewhere.test"),
]


def _authenticator(surface: FakeSurface, store=None) -> SessionAuthenticator:
    return SessionAuthenticator(lambda: surface, store if store is not None else make_store(), PROVIDER)


def test_navigation_rules():
    rules = NavigationRules(PROVIDER)
    assert rules.allows("https://example-provider.com/login")
    assert rules.allows("https://static.example-provider.com/app.js")
    assert rules.allows("https://assets.example-cdn.com/logo.svg")
    assert not rules.allows("https://evil.example/phish")
    assert not rules.allows("http://example-provider.com/login")
    assert not rules.allows("https://example-provider.com.evil.example/")

    assert rules.possibly_authenticated("https://example-provider.com/dashboard")
    assert rules.possibly_authenticated("https://example-provider.com/")
    assert not rules.possibly_authenticated("https://example-provider.com/login?return_to=/")
    assert not rules.possibly_authenticated("https://example-provider.com/sessions/two-factor")
    assert not rules.possibly_authenticated("https://assets.example-cdn.com/dashboard")


def test_successful_sign_in_stores_cookies_and_closes_window():
    surface = FakeSurface(SIGNED_IN_JAR)
    store = make_store()
    auth = _authenticator(surface, store)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        assert auth.in_progress
        await surface.navigate("https://example-provider.com/login")
        assert not task.done()
        await surface.navigate("https://example-provider.com/dashboard")
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.SUCCESS
    assert result.ok
    assert set(result.credentials) == {"session_id", "logged_in"}
    assert store.load()["session_id"].value == "abc123"
    assert surface.opened_url == PROVIDER.login_url
    assert surface.close_calls == 1
    assert auth.state is AuthState.DONE
    assert not auth.in_progress


def test_off_allow_list_navigation_is_blocked():
    surface = FakeSurface(SIGNED_IN_JAR)
    auth = _authenticator(surface)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        assert await surface.navigate("https://evil.example/phish") is False
        assert await surface.navigate("https://assets.example-cdn.com/app.js") is True
        surface.user_closes()
        return await task

    result = asyncio.run(scenario())
    assert surface.blocked == ["https://evil.example/phish"]
    assert result.status is AuthStatus.USER_CANCELLED


def test_partial_cookies_keep_waiting():
    surface = FakeSurface([cookie("logged_in", "no")])
    store = make_store()
    auth = _authenticator(surface, store)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        await surface.navigate("https://example-provider.com/dashboard")
        assert not task.done()
        surface.jar.append(cookie("session_id", "late"))
        await surface.navigate("https://example-provider.com/dashboard")
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.SUCCESS
    assert store.load()["session_id"].value == "late"


def test_closing_the_window_cancels():
    surface = FakeSurface()
    store = make_store()
    auth = _authenticator(surface, store)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        surface.user_closes()
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.USER_CANCELLED
    assert len(store.load()) == 0
    assert auth.state is AuthState.USER_CANCELLED


def test_close_after_success_does_not_change_result():
    surface = FakeSurface(SIGNED_IN_JAR)
    auth = _authenticator(surface)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        await surface.navigate("https://example-provider.com/dashboard")
        surface.user_closes()
        await surface.navigate("https://example-provider.com/settings")
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.SUCCESS
    assert auth.state is AuthState.DONE


def test_second_attempt_while_in_flight_is_rejected():
    surface = FakeSurface(SIGNED_IN_JAR)
    auth = _authenticator(surface)

    async def scenario():
        first = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        second = await auth.authenticate()
        await surface.navigate("https://example-provider.com/dashboard")
        return await first, second

    first, second = asyncio.run(scenario())
    assert second.status is AuthStatus.ALREADY_IN_PROGRESS
    assert first.status is AuthStatus.SUCCESS
    assert surface.close_calls == 1


def test_cookie_jar_failure_is_extraction_failed():
    surface = FakeSurface(fail_cookies=True)
    auth = _authenticator(surface)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        await surface.navigate("https://example-provider.com/dashboard")
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.EXTRACTION_FAILED
    assert "cookie store unavailable" in result.message
    assert surface.close_calls == 1


def test_store_failure_is_extraction_failed_and_keeps_previous_session():
    backend = FlakyBackend()
    store = make_store(backend)
    store.save([cookie("session_id", "previous")])
    backend.fail_next_write = True
    surface = FakeSurface(SIGNED_IN_JAR)
    auth = _authenticator(surface, store)

    async def scenario():
        task = asyncio.create_task(auth.authenticate())
        await surface.opened.wait()
        await surface.navigate("https://example-provider.com/dashboard")
        return await task

    result = asyncio.run(scenario())
    assert result.status is AuthStatus.EXTRACTION_FAILED
    assert store.load()["session_id"].value == "previous"


def test_window_that_fails_to_open_is_extraction_failed():
    class BrokenSurface(FakeSurface):
        async def open(self, url, **kwargs):
            raise RuntimeError("no display")

    surface = BrokenSurface()
    result = asyncio.run(_authenticator(surface).authenticate())
    assert result.status is AuthStatus.EXTRACTION_FAILED
    assert surface.close_calls == 1
