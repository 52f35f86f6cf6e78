"""Browsing Session capability.

The extraction and session code only ever talks to these protocols. Locators
are Playwright selector strings ("css=..." or "xpath=..."); queries that match
nothing return an empty list instead of raising.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from harvester.models.cookies import CookieEntry


class Scope(Protocol):
    """Anything that can be queried with a locator: a page or an element."""

    async def find_all(self, locator: str) -> list[PageElement]: ...


class PageElement(Scope, Protocol):
    """A handle to one rendered element."""

    async def text(self) -> str:
        """Rendered (visible) text of the element."""
        ...

    async def get_attribute(self, name: str) -> str | None:
        """Attribute value; ``href``/``src`` are returned fully resolved."""
        ...

    async def click(self) -> None: ...

    async def fill(self, value: str) -> None: ...

    async def is_visible(self) -> bool: ...

    async def identity(self) -> str:
        """Stable id of the underlying DOM node for the lifetime of the page."""
        ...


class BrowsingSession(Scope, Protocol):
    """A controllable page view. One owner drives it at a time."""

    async def navigate(self, url: str) -> None: ...

    async def reload(self) -> None: ...

    async def sleep(self, ms: int) -> None: ...

    async def wait_until_present(self, locator: str, timeout_ms: int) -> PageElement:
        """Wait for ``locator`` to match; raises BrowserTimeout when it never does."""
        ...

    async def execute_script(self, script: str, *args: Any) -> Any: ...

    async def current_url(self) -> str: ...

    async def page_markup(self) -> str: ...

    async def title(self) -> str: ...

    async def get_cookies(self) -> list[CookieEntry]: ...

    async def add_cookies(self, cookies: Sequence[CookieEntry]) -> None: ...

    async def close(self) -> None: ...
