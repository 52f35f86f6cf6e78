from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from harvester.browser import playwright_session
from harvester.browser.playwright_session import PlaywrightBrowserSession, launch_browser
from harvester.config.settings import BrowserSettings
from harvester.models.cookies import CookieEntry


@pytest.fixture
def driver(monkeypatch):
    """A stubbed Playwright driver; ``driver.chromium.launch`` is an AsyncMock."""
    pw = MagicMock()
    pw.stop = AsyncMock()
    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    monkeypatch.setattr(playwright_session, "async_playwright", lambda: starter)
    return pw


async def test_failed_launch_stops_driver(driver):
    driver.chromium.launch = AsyncMock(side_effect=PlaywrightError("Executable doesn't exist"))

    with pytest.raises(PlaywrightError):
        await launch_browser(BrowserSettings())

    driver.stop.assert_awaited_once()


async def test_failed_context_closes_browser_and_driver(driver):
    browser = MagicMock()
    browser.new_context = AsyncMock(side_effect=PlaywrightError("context refused"))
    browser.close = AsyncMock()
    driver.chromium.launch = AsyncMock(return_value=browser)

    session = PlaywrightBrowserSession(BrowserSettings())
    with pytest.raises(PlaywrightError):
        await session.start()

    browser.close.assert_awaited_once()
    driver.stop.assert_awaited_once()
    assert session.browser is None


def test_cookie_from_playwright_session_cookie_has_no_expiry():
    entry = PlaywrightBrowserSession._from_playwright(
        {"name": "xs", "value": "abc", "domain": ".facebook.com", "path": "/", "expires": -1, "httpOnly": True}
    )

    assert entry.expiry is None
    assert entry.http_only is True
    assert entry.secure is False


def test_cookie_to_playwright():
    with_domain = PlaywrightBrowserSession._to_playwright(
        CookieEntry(name="c_user", value="1", domain=".facebook.com", expiry=1700000000), None
    )
    without_domain = PlaywrightBrowserSession._to_playwright(
        CookieEntry(name="c_user", value="1"), "https://www.facebook.com/"
    )

    assert with_domain["expires"] == 1700000000
    assert with_domain["path"] == "/"
    assert "url" not in with_domain
    assert without_domain["url"] == "https://www.facebook.com/"
    assert "expires" not in without_domain
