"""Playwright-backed Browsing Session.

Provides:
1. Chromium launch with anti-detection args and a consistent context
2. Stealth JS injected before any page loads
3. Cookie conversion between the persisted jar layout and Playwright's format
4. Translation of Playwright errors into the harvester error hierarchy
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from harvester.config.settings import BrowserSettings
from harvester.errors import BrowserError, BrowserTimeout, SessionCrashed
from harvester.models.cookies import CookieEntry

from .constants import (
    CLOSED_TARGET_MARKERS,
    IDENTITY_ATTRIBUTE,
    LAUNCH_ARGS,
    STEALTH_JS,
    VIEWPORT,
)

logger = logging.getLogger(__name__)

# Element clicks should fail fast on stale or covered nodes.
_ACTION_TIMEOUT_MS = 5000

_RESOLVED_ATTRIBUTE_JS = """
(el, name) => {
    const v = el[name];
    return typeof v === 'string' && v ? v : el.getAttribute(name);
}
"""

_IDENTITY_JS = """
(el, attr) => {
    if (!el.hasAttribute(attr)) {
        window.__harvesterSeq = (window.__harvesterSeq || 0) + 1;
        el.setAttribute(attr, String(window.__harvesterSeq));
    }
    return el.getAttribute(attr);
}
"""


@contextmanager
def _translated(action: str) -> Iterator[None]:
    """Re-raise Playwright failures as harvester errors."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise BrowserTimeout(f"{action} timed out: {e}") from e
    except PlaywrightError as e:
        message = str(e)
        if any(marker in message for marker in CLOSED_TARGET_MARKERS):
            raise SessionCrashed(f"{action} failed: {message}") from e
        raise BrowserError(f"{action} failed: {message}") from e


class PlaywrightElement:
    """PageElement over a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle) -> None:
        self.handle = handle

    async def text(self) -> str:
        with _translated("inner_text"):
            return await self.handle.inner_text()

    async def get_attribute(self, name: str) -> str | None:
        with _translated(f"get_attribute({name})"):
            if name in ("href", "src"):
                return await self.handle.evaluate(_RESOLVED_ATTRIBUTE_JS, name)
            return await self.handle.get_attribute(name)

    async def click(self) -> None:
        with _translated("click"):
            await self.handle.click(timeout=_ACTION_TIMEOUT_MS)

    async def fill(self, value: str) -> None:
        with _translated("fill"):
            await self.handle.fill(value, timeout=_ACTION_TIMEOUT_MS)

    async def is_visible(self) -> bool:
        with _translated("is_visible"):
            return await self.handle.is_visible()

    async def find_all(self, locator: str) -> list[PlaywrightElement]:
        with _translated(f"query {locator}"):
            handles = await self.handle.query_selector_all(locator)
        return [PlaywrightElement(h) for h in handles]

    async def identity(self) -> str:
        with _translated("identity"):
            return await self.handle.evaluate(_IDENTITY_JS, IDENTITY_ATTRIBUTE)


class PlaywrightBrowserSession:
    """Chromium page driven through Playwright.

    Usage:
        async with PlaywrightBrowserSession(settings.browser) as session:
            await session.navigate("https://www.facebook.com")
    """

    def __init__(self, settings: BrowserSettings) -> None:
        self.settings = settings

        # Set by start()
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self._pw: Playwright | None = None

    async def start(self) -> PlaywrightBrowserSession:
        self._pw = await async_playwright().start()
        try:
            self.browser = await self._pw.chromium.launch(
                headless=self.settings.headless,
                args=LAUNCH_ARGS,
            )
            self.context = await self.browser.new_context(
                viewport=VIEWPORT,
                user_agent=self.settings.user_agent,
                locale=self.settings.locale,
                timezone_id=self.settings.timezone_id,
            )
            await self.context.add_init_script(STEALTH_JS)
            self.context.set_default_timeout(self.settings.timeout_ms)
            self.context.set_default_navigation_timeout(self.settings.timeout_ms)

            self.page = await self.context.new_page()
        except BaseException:
            logger.error("Browser launch failed, shutting down driver")
            await self.close()
            raise

        logger.info(
            "Browser session opened (headless=%s, ua=%s)",
            self.settings.headless,
            self.settings.user_agent[:50] + "...",
        )
        return self

    async def __aenter__(self) -> PlaywrightBrowserSession:
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
        except PlaywrightError as e:
            logger.warning("Error while closing browser: %s", e)
        finally:
            if self._pw:
                await self._pw.stop()
            self.context = None
            self.browser = None
            self.page = None
            self._pw = None
        logger.info("Browser session closed")

    # ──────────────────────────────────────
    # Navigation
    # ──────────────────────────────────────

    def _require_page(self) -> Page:
        if self.page is None or self.page.is_closed():
            raise SessionCrashed("Browser page is not open")
        return self.page

    async def navigate(self, url: str) -> None:
        page = self._require_page()
        with _translated(f"goto {url}"):
            await page.goto(url, wait_until="domcontentloaded")

    async def reload(self) -> None:
        page = self._require_page()
        with _translated("reload"):
            await page.reload(wait_until="domcontentloaded")

    async def sleep(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)

    async def wait_until_present(self, locator: str, timeout_ms: int) -> PlaywrightElement:
        page = self._require_page()
        with _translated(f"wait for {locator}"):
            handle = await page.wait_for_selector(locator, timeout=timeout_ms, state="attached")
        if handle is None:
            raise BrowserTimeout(f"{locator} did not appear within {timeout_ms}ms")
        return PlaywrightElement(handle)

    async def find_all(self, locator: str) -> list[PlaywrightElement]:
        page = self._require_page()
        with _translated(f"query {locator}"):
            handles = await page.query_selector_all(locator)
        return [PlaywrightElement(h) for h in handles]

    async def execute_script(self, script: str, *args: Any) -> Any:
        page = self._require_page()
        unwrapped = [a.handle if isinstance(a, PlaywrightElement) else a for a in args]
        with _translated("evaluate"):
            if not unwrapped:
                return await page.evaluate(script)
            if len(unwrapped) == 1:
                return await page.evaluate(script, unwrapped[0])
            return await page.evaluate(script, unwrapped)

    async def current_url(self) -> str:
        return self._require_page().url

    async def page_markup(self) -> str:
        page = self._require_page()
        with _translated("content"):
            return await page.content()

    async def title(self) -> str:
        page = self._require_page()
        with _translated("title"):
            return await page.title()

    # ──────────────────────────────────────
    # Cookies
    # ──────────────────────────────────────

    async def get_cookies(self) -> list[CookieEntry]:
        if self.context is None:
            raise SessionCrashed("Browser context is not open")
        with _translated("cookies"):
            raw = await self.context.cookies()
        return [self._from_playwright(c) for c in raw]

    async def add_cookies(self, cookies: Sequence[CookieEntry]) -> None:
        if self.context is None:
            raise SessionCrashed("Browser context is not open")
        fallback_url = self.page.url if self.page else None
        pw_cookies = [self._to_playwright(c, fallback_url) for c in cookies]
        with _translated("add_cookies"):
            await self.context.add_cookies(pw_cookies)

    @staticmethod
    def _from_playwright(c: dict[str, Any]) -> CookieEntry:
        expires = c.get("expires")
        return CookieEntry(
            name=c.get("name", ""),
            value=c.get("value", ""),
            domain=c.get("domain"),
            path=c.get("path", "/"),
            # Playwright reports session cookies as -1
            expiry=int(expires) if expires is not None and expires > 0 else None,
            http_only=bool(c.get("httpOnly", False)),
            secure=bool(c.get("secure", False)),
        )

    @staticmethod
    def _to_playwright(c: CookieEntry, fallback_url: str | None) -> dict[str, Any]:
        cookie: dict[str, Any] = {
            "name": c.name,
            "value": c.value,
            "httpOnly": c.http_only,
            "secure": c.secure,
        }
        if c.domain:
            cookie["domain"] = c.domain
            cookie["path"] = c.path or "/"
        else:
            cookie["url"] = fallback_url
        if c.expiry:
            cookie["expires"] = c.expiry
        return cookie


async def launch_browser(settings: BrowserSettings) -> PlaywrightBrowserSession:
    """Launch a fresh browser and return the open session."""
    return await PlaywrightBrowserSession(settings).start()
