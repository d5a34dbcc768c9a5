from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

from copilot_notify.application.ports.browser_surface_port import (
    BrowserSurfacePort,
    CloseHandler,
    NavigationHandler,
    NavigationPolicy,
)
from copilot_notify.domain.entities.cookie import Cookie

log = logging.getLogger(__name__)

VIEWPORT = {"width": 1024, "height": 768}


def cookie_from_playwright(raw: dict[str, Any]) -> Cookie:
    """Playwright reports session cookies with ``expires == -1``."""
    expires = raw.get("expires")
    return Cookie(
        name=raw["name"],
        value=raw["value"],
        domain=raw.get("domain", ""),
        path=raw.get("path") or "/",
        expires=datetime.fromtimestamp(expires, UTC) if expires is not None and expires >= 0 else None,
        secure=bool(raw.get("secure", False)),
    )


class PlaywrightBrowserSurface(BrowserSurfacePort):
    """Headed Chromium window with a fresh, non-persistent context.

    Nothing is read from or written to a browser profile on disk; the context and
    all of its storage are discarded in close().
    """

    def __init__(self, *, user_agent: str, headless: bool = False) -> None:
        self.user_agent = user_agent
        self.headless = headless
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._closing = False

    async def open(
        self,
        url: str,
        *,
        allow_navigation: NavigationPolicy,
        on_navigation_finished: NavigationHandler,
        on_closed: CloseHandler,
    ) -> None:
        self._pw = await async_playwright().start()
        self._browser = await self._pw.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(user_agent=self.user_agent, viewport=VIEWPORT)

        async def route(route: Route) -> None:
            request = route.request
            if request.is_navigation_request() and not allow_navigation(request.url):
                await route.abort("blockedbyclient")
            else:
                await route.continue_()

        await self._context.route("**/*", route)
        page = self._page = await self._context.new_page()

        async def loaded(p: Page) -> None:
            await on_navigation_finished(p.url)

        def closed(*_: Any) -> None:
            if not self._closing:
                on_closed()

        page.on("load", loaded)
        page.on("close", closed)
        self._browser.on("disconnected", closed)
        await page.goto(url)

    async def cookies(self) -> list[Cookie]:
        if self._context is None:
            raise RuntimeError("browser context is not open")
        return [cookie_from_playwright(dict(c)) for c in await self._context.cookies()]

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self._context is not None:
            await self._context.close()
        if self._browser is not None and self._browser.is_connected():
            await self._browser.close()
        if self._pw is not None:
            await self._pw.stop()
        self._context = self._browser = self._page = self._pw = None
        log.debug("Sign-in window closed")
