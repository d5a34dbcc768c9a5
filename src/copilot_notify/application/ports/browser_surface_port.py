from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from copilot_notify.domain.entities.cookie import Cookie

NavigationPolicy = Callable[[str], bool]
NavigationHandler = Callable[[str], Awaitable[None]]
CloseHandler = Callable[[], None]


class BrowserSurfacePort(Protocol):
    """An interactive, isolated browser window used for one sign-in attempt."""

    async def open(
        self,
        url: str,
        *,
        allow_navigation: NavigationPolicy,
        on_navigation_finished: NavigationHandler,
        on_closed: CloseHandler,
    ) -> None:
        """Show the window and start loading ``url``.

        ``allow_navigation`` is consulted for every navigation request; a False
        answer cancels it. ``on_navigation_finished`` receives the URL of every
        completed main-frame navigation. ``on_closed`` fires when the user closes
        the window.
        """
        ...

    async def cookies(self) -> list[Cookie]: ...

    async def close(self) -> None:
        """Idempotent."""
        ...
