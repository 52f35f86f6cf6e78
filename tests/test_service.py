import asyncio

import pytest
from pydantic import SecretStr

from harvester.extraction.diagnostics import MemoryDiagnostics
from harvester.extraction.selectors import (
    EMAIL_FIELD_LOCATORS,
    PASSWORD_FIELD_LOCATORS,
    POST_CONTAINER_LOCATORS,
    SUBMIT_BUTTON_LOCATORS,
)
from harvester.models.content import PostItem, ScrapeRequest
from harvester.models.session import LoginCredentials, SessionStatus
from harvester.service import BUSY_MESSAGE, HarvesterService

from tests.fakes import FakeBrowser, FakeElement, browser_factory, make_post

HOME = "https://www.facebook.com/"


@pytest.fixture
def browser():
    return FakeBrowser(url=HOME)


@pytest.fixture
def factory(browser):
    return browser_factory(browser)


@pytest.fixture
def diagnostics():
    return MemoryDiagnostics()


@pytest.fixture
def service(facebook, timing, record_store, credential_store, factory, diagnostics):
    return HarvesterService(
        facebook=facebook,
        timing=timing,
        store=record_store,
        credentials=credential_store,
        browser_factory=factory,
        diagnostics=diagnostics,
    )


@pytest.fixture
def logged_in(credential_store, saved_credential):
    credential_store.credentials[saved_credential.name] = saved_credential


# ──────────────────────────────────────
# Scraping
# ──────────────────────────────────────


async def test_scrape_without_saved_session_fails_without_launching(service, factory):
    result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert result.success is False
    assert "No saved session found" in result.message
    assert factory.launches == 0


@pytest.mark.usefixtures("logged_in")
async def test_scrape_restores_session_and_tolerates_empty_feed(service, browser, factory, diagnostics):
    result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert result.success is True
    assert result.posts == []
    assert (result.saved_count, result.skipped_count) == (0, 0)
    assert result.message == "Scraped 0 posts (0 saved, 0 skipped)"
    assert factory.launches == 1
    assert browser.navigations == ["https://www.facebook.com", "https://m.facebook.com/groups/1"]
    assert [e.kind for e in diagnostics.events] == ["no_post_containers"]


@pytest.mark.usefixtures("logged_in")
async def test_repeat_scrape_skips_stored_posts(service, browser, factory):
    browser.elements[POST_CONTAINER_LOCATORS[0]] = [
        make_post(post_id="1"),
        make_post(post_id="2", text="Looking for a roommate"),
    ]

    first = await service.scrape_feed(ScrapeRequest(group_id="1"))
    second = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert (first.saved_count, first.skipped_count) == (2, 0)
    assert (second.saved_count, second.skipped_count) == (0, 2)
    assert second.message == "Scraped 2 posts (0 saved, 2 skipped)"
    assert await service.count_posts() == 2
    # the open session is reused
    assert factory.launches == 1


@pytest.mark.usefixtures("logged_in")
async def test_expired_saved_session_is_reported(service, browser, credential_store):
    browser.on_reload = lambda b: setattr(b, "url", "https://www.facebook.com/login.php")

    result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert result.success is False
    assert "could not be restored" in result.message
    assert credential_store.deleted == ["facebook-session"]
    assert browser.closed is True
    assert service.session is None


@pytest.mark.usefixtures("logged_in")
async def test_scrape_failure_releases_browser(service, browser):
    await service.scrape_feed(ScrapeRequest(group_id="1"))
    browser.fail_navigate = RuntimeError("Target page, context or browser has been closed")

    result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert result.success is False
    assert "has been closed" in result.message
    assert browser.closed is True
    assert service.session is None


async def test_concurrent_scrape_is_rejected(service):
    async with service._lock:
        assert service.busy
        result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert result.success is False
    assert result.message == BUSY_MESSAGE


async def test_concurrent_login_is_rejected(service):
    async with service._lock:
        outcome = await service.establish_session()

    assert outcome.status is SessionStatus.FAILED
    assert outcome.message == BUSY_MESSAGE


# ──────────────────────────────────────
# Session
# ──────────────────────────────────────


@pytest.mark.usefixtures("logged_in")
async def test_establish_session_restores_saved_cookies(service, browser):
    outcome = await service.establish_session()

    assert outcome.status is SessionStatus.AUTHENTICATED
    assert outcome.used_cookies is True
    assert service.session is browser
    assert browser.closed is False


async def test_establish_session_without_credentials_fails_and_releases(service, browser):
    outcome = await service.establish_session()

    assert outcome.status is SessionStatus.FAILED
    assert outcome.message == "Email and password are required"
    assert browser.closed is True
    assert service.session is None


def test_configured_credentials_are_the_fallback(service, facebook):
    service.facebook = facebook.model_copy(update={"email": "jane@example.com", "password": SecretStr("hunter2")})
    assert service._resolve_login(None).email == "jane@example.com"

    explicit = LoginCredentials(email="john@example.com", password="pw")
    assert service._resolve_login(explicit) is explicit


async def test_missing_login_field_becomes_failed_outcome(service, browser):
    outcome = await service.establish_session(LoginCredentials(email="jane@example.com", password="hunter2"))

    assert outcome.status is SessionStatus.FAILED
    assert outcome.message == "Could not find email input field"
    assert browser.closed is True


async def test_fresh_login_keeps_browser_for_scraping(service, browser, factory, credential_store):
    email, password = FakeElement(), FakeElement()

    def land_home():
        browser.url = HOME
        browser.elements.clear()

    browser.url = "https://www.facebook.com/login.php"
    browser.elements.update(
        {
            EMAIL_FIELD_LOCATORS[0]: [email],
            PASSWORD_FIELD_LOCATORS[0]: [password],
            SUBMIT_BUTTON_LOCATORS[0]: [FakeElement("Log in", on_click=land_home)],
        }
    )

    outcome = await service.establish_session(LoginCredentials(email="jane@example.com", password="hunter2"))
    result = await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert outcome.status is SessionStatus.AUTHENTICATED
    assert len(credential_store.saved) == 1
    assert result.success is True
    assert factory.launches == 1


@pytest.mark.usefixtures("logged_in")
async def test_release_session_closes_browser(service, browser):
    await service.release_session()
    assert browser.closed is False

    await service.establish_session()
    await service.release_session()

    assert browser.closed is True
    assert service.session is None


async def test_clear_posts(service, record_store):
    await record_store.insert_with_children(PostItem(text="hello", url="https://www.facebook.com/p/1"), "h1")

    assert await service.clear_posts() == 1
    assert await service.list_posts() == []


@pytest.mark.usefixtures("logged_in")
async def test_cancelled_scrape_releases_browser(service, browser):
    await service.scrape_feed(ScrapeRequest(group_id="1"))
    browser.fail_navigate = asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await service.scrape_feed(ScrapeRequest(group_id="1"))

    assert browser.closed is True
    assert service.session is None
    assert not service.busy


@pytest.mark.usefixtures("logged_in")
async def test_cancelled_login_releases_browser(service, browser):
    def cancel(b: FakeBrowser) -> None:
        raise asyncio.CancelledError()

    browser.on_sleep = cancel

    with pytest.raises(asyncio.CancelledError):
        await service.establish_session()

    assert browser.closed is True
    assert service.session is None
