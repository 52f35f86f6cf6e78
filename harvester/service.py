"""HarvesterService: the boundary the API and CLI talk to.

Owns:
- at most one Browsing Session (an explicit handle, opened on demand)
- the SessionManager, the ExtractionPipeline and the DeduplicationGate
- an asyncio.Lock so only one caller drives the browser at a time

Every public coroutine returns an outcome object instead of raising. When an
error propagates out of the core, the browser is released before returning;
cancellation releases it too and is re-raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from harvester.auth.credentials import CredentialStore, build_credential_store
from harvester.auth.manager import SessionManager
from harvester.browser.base import BrowsingSession
from harvester.browser.playwright_session import launch_browser
from harvester.config.settings import (
    BrowserSettings,
    FacebookSettings,
    StorageSettings,
    TimingSettings,
    get_settings,
)
from harvester.db.database import Database
from harvester.db.store import RecordStore, SqlRecordStore
from harvester.dedup import DeduplicationGate
from harvester.errors import SessionInvalid
from harvester.extraction.diagnostics import DiagnosticsSink, LoggingDiagnostics
from harvester.extraction.feed import scrape_feed
from harvester.extraction.pipeline import ExtractionPipeline
from harvester.models.content import ScrapeRequest, ScrapeResult, StoredPost
from harvester.models.session import LoginCredentials, SessionOutcome, SessionStatus

logger = logging.getLogger(__name__)

BrowserFactory = Callable[[BrowserSettings], Awaitable[BrowsingSession]]

BUSY_MESSAGE = "Another scrape is already in progress"


class HarvesterService:
    """Session, scrape and storage operations behind one lock.

    Usage:
        service = HarvesterService()
        outcome = await service.establish_session(LoginCredentials(email=..., password=...))
        result = await service.scrape_feed(ScrapeRequest(group_id="123"))
        await service.release_session()
    """

    def __init__(
        self,
        *,
        facebook: FacebookSettings | None = None,
        browser: BrowserSettings | None = None,
        timing: TimingSettings | None = None,
        storage: StorageSettings | None = None,
        store: RecordStore | None = None,
        credentials: CredentialStore | None = None,
        browser_factory: BrowserFactory | None = None,
        diagnostics: DiagnosticsSink | None = None,
    ) -> None:
        settings = get_settings()
        self.facebook = facebook or settings.facebook
        self.browser_settings = browser or settings.browser
        self.timing = timing or settings.timing
        storage = storage or settings.storage

        self.credentials = credentials or build_credential_store(storage)
        self.store = store or SqlRecordStore(Database(storage.db_path))
        self.manager = SessionManager(self.credentials, self.facebook, self.timing)
        self.gate = DeduplicationGate(self.store)
        self.pipeline = ExtractionPipeline(
            self.timing,
            diagnostics=diagnostics or LoggingDiagnostics(storage.debug_dir),
        )
        self.browser_factory = browser_factory or launch_browser

        self.session: BrowsingSession | None = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # ──────────────────────────────────────
    # Session
    # ──────────────────────────────────────

    def _resolve_login(self, login: LoginCredentials | None) -> LoginCredentials | None:
        """Explicit credentials win; configured ones are the fallback."""
        if login is not None:
            return login
        if self.facebook.email and self.facebook.password.get_secret_value():
            return LoginCredentials(email=self.facebook.email, password=self.facebook.password)
        return None

    async def _open_session(self) -> BrowsingSession:
        if self.session is None:
            self.session = await self.browser_factory(self.browser_settings)
        return self.session

    async def establish_session(self, login: LoginCredentials | None = None) -> SessionOutcome:
        if self.busy:
            return SessionOutcome(status=SessionStatus.FAILED, message=BUSY_MESSAGE)

        async with self._lock:
            logger.info("Starting login process...")
            try:
                session = await self._open_session()
                outcome = await self.manager.establish(session, self._resolve_login(login))
            except Exception as e:
                logger.error("Login failed: %s", e)
                await self._release()
                return SessionOutcome(status=SessionStatus.FAILED, message=str(e))
            except BaseException:
                await self._release()
                raise

            if outcome.status is SessionStatus.FAILED:
                logger.error("Login failed: %s", outcome.message)
                await self._release()
            else:
                logger.info("Login finished with status %s", outcome.status.value)
            return outcome

    async def _ensure_session(self) -> BrowsingSession:
        """Reuse the open session, or restore one from the stored credential.

        Raises:
            SessionInvalid: nothing stored, or the stored credential no longer works
        """
        if self.session is not None:
            logger.info("Reusing existing browser session")
            return self.session

        if not await self.credentials.exists(self.facebook.session_name):
            logger.warning("No saved cookies found. Please login first using /scraper/login")
            raise SessionInvalid("No saved session found. Please login first using the /scraper/login endpoint")

        logger.info("Found saved cookies, initializing browser with session...")
        session = await self._open_session()
        outcome = await self.manager.establish(session, None)
        if outcome.status is not SessionStatus.AUTHENTICATED:
            raise SessionInvalid(f"Saved session could not be restored: {outcome.message}")
        return session

    async def _release(self) -> None:
        session, self.session = self.session, None
        if session is None:
            return
        try:
            await session.close()
        except Exception as e:
            logger.warning("Error while releasing browser session: %s", e)

    async def release_session(self) -> None:
        logger.info("Closing browser...")
        await self._release()

    # ──────────────────────────────────────
    # Scraping
    # ──────────────────────────────────────

    async def scrape_feed(self, request: ScrapeRequest) -> ScrapeResult:
        if self.busy:
            logger.warning("Rejected scrape of group %s: %s", request.group_id, BUSY_MESSAGE)
            return ScrapeResult(success=False, message=BUSY_MESSAGE)

        async with self._lock:
            logger.info("Fetching posts from group %s...", request.group_id)
            try:
                session = await self._ensure_session()
                snapshot = await scrape_feed(session, request, self.pipeline, self.facebook.feed_base_url)

                saved = skipped = 0
                for post in snapshot.posts:
                    if await self.gate.save(post) == "saved":
                        saved += 1
                    else:
                        skipped += 1
            except Exception as e:
                logger.error("Failed to get group posts: %s", e)
                await self._release()
                return ScrapeResult(success=False, message=str(e))
            except BaseException:
                await self._release()
                raise

            message = f"Scraped {len(snapshot.posts)} posts ({saved} saved, {skipped} skipped)"
            logger.info(message)
            return ScrapeResult(
                success=True,
                message=message,
                feed_name=snapshot.feed_name,
                member_count=snapshot.member_count,
                posts=snapshot.posts,
                saved_count=saved,
                skipped_count=skipped,
            )

    # ──────────────────────────────────────
    # Stored records
    # ──────────────────────────────────────

    async def list_posts(self) -> list[StoredPost]:
        return await self.store.list_posts()

    async def count_posts(self) -> int:
        return await self.store.count()

    async def clear_posts(self) -> int:
        return await self.store.delete_all()
