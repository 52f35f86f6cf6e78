"""Extraction Pipeline.

Turns a loaded feed page into ``PostItem`` records:

1. Locate post containers (ranked strategies, then content-driven discovery)
2. Resolve every field of each container through the SelectorResolver
3. Optionally expand and extract the container's comments

Field-level failures degrade to null/zero values; a container that cannot be
read at all is skipped; a page with no containers yields an empty list plus a
diagnostic event. Only a crashed session escapes.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from harvester.browser.base import BrowsingSession, PageElement
from harvester.config.settings import TimingSettings
from harvester.errors import BrowserError, ExtractionEmpty
from harvester.models.content import CommentItem, PostItem, ScrapeRequest
from harvester.normalize import canonicalize_url, clean_text, is_ui_text

from .diagnostics import DiagnosticEvent, DiagnosticsSink, LoggingDiagnostics
from .resolver import Resolution, SelectorResolver
from .selectors import (
    AUTHOR_LANDMARK_LOCATOR,
    COMMENT_CONTAINER_LOCATORS,
    COMMENT_EXPAND_LOCATORS,
    DISCOVERY_ANCESTOR_LOCATOR,
    DISCOVERY_LEAF_LOCATOR,
    POST_CONTAINER_LOCATORS,
    FieldKind,
)

logger = logging.getLogger(__name__)

# Containers shorter than this are buttons, headers or placeholders.
MIN_CONTENT_LENGTH = 20
MAX_COMMENT_EXPANSIONS = 3

SCROLL_INTO_VIEW_JS = "(el) => el.scrollIntoView(true)"


async def has_content(element: PageElement) -> bool:
    """True when the element carries real text rather than chrome."""
    try:
        text = (await element.text()).strip()
    except BrowserError:
        return False
    return len(text) > MIN_CONTENT_LENGTH and not is_ui_text(text)


async def _link_of(resolution: Resolution | None) -> Optional[str]:
    if resolution is None:
        return None
    try:
        href = await resolution.element.get_attribute("href")
    except BrowserError:
        return None
    return canonicalize_url(href) if href else None


class ExtractionPipeline:
    """Assembles posts and comments from a loaded page."""

    def __init__(
        self,
        timing: TimingSettings,
        resolver: SelectorResolver | None = None,
        diagnostics: DiagnosticsSink | None = None,
    ) -> None:
        self.timing = timing
        self.resolver = resolver or SelectorResolver()
        self.diagnostics = diagnostics or LoggingDiagnostics()

    # ──────────────────────────────────────
    # Containers
    # ──────────────────────────────────────

    async def locate_post_containers(self, session: BrowsingSession) -> list[PageElement]:
        """First strategy yielding validated containers wins.

        Raises:
            ExtractionEmpty: nothing found by any strategy or by discovery
        """
        for locator in POST_CONTAINER_LOCATORS:
            try:
                candidates = await session.find_all(locator)
            except BrowserError:
                logger.debug("Container locator failed: %s", locator)
                continue
            if not candidates:
                continue

            valid = [c for c in candidates if await has_content(c)]
            logger.debug("%s: %d candidates, %d with content", locator, len(candidates), len(valid))
            if valid:
                logger.info("Found %d post containers with %s", len(valid), locator)
                return valid

        logger.warning("No container strategy matched, falling back to content discovery")
        discovered = await self.discover_containers(session)
        if discovered:
            logger.info("Discovered %d post containers from content", len(discovered))
            return discovered

        try:
            title = await session.title()
        except BrowserError:
            title = ""
        raise ExtractionEmpty(await session.current_url(), title)

    async def discover_containers(self, session: BrowsingSession) -> list[PageElement]:
        """Climb from text leaves to post-shaped ancestors that name an author."""
        try:
            leaves = await session.find_all(DISCOVERY_LEAF_LOCATOR)
        except BrowserError:
            return []

        seen: set[str] = set()
        containers: list[PageElement] = []
        for leaf in leaves:
            try:
                ancestors = await leaf.find_all(DISCOVERY_ANCESTOR_LOCATOR)
                if not ancestors:
                    continue
                ancestor = ancestors[0]
                identity = await ancestor.identity()
                if identity in seen:
                    continue
                seen.add(identity)
                if await ancestor.find_all(AUTHOR_LANDMARK_LOCATOR):
                    containers.append(ancestor)
            except BrowserError:
                continue
        return containers

    # ──────────────────────────────────────
    # Posts
    # ──────────────────────────────────────

    async def extract_posts(self, session: BrowsingSession, request: ScrapeRequest) -> list[PostItem]:
        try:
            containers = await self.locate_post_containers(session)
        except ExtractionEmpty as e:
            logger.error("Failed to find any posts at %s", e.url)
            await self._emit_empty(session, e)
            return []

        to_process = containers[: request.max_posts]
        logger.info("Processing %d posts...", len(to_process))

        posts: list[PostItem] = []
        for index, container in enumerate(to_process, start=1):
            try:
                post = await self.extract_post(session, container, request)
            except (BrowserError, ValidationError) as e:
                logger.warning("Failed to extract post %d: %s", index, e)
                continue
            posts.append(post)
            logger.info("Extracted post %d/%d", index, len(to_process))
        return posts

    async def extract_post(
        self,
        session: BrowsingSession,
        container: PageElement,
        request: ScrapeRequest,
    ) -> PostItem:
        resolve = self.resolver
        author = await resolve.resolve(container, FieldKind.AUTHOR)
        comments_count = await resolve.resolve_count(container, FieldKind.COMMENTS)

        comments: list[CommentItem] = []
        if request.include_comments and comments_count > 0:
            comments = await self.extract_comments(session, container, request.max_comments_per_post)

        return PostItem(
            text=await self.extract_text(container),
            author_name=author.value if author else None,
            author_url=await _link_of(author),
            url=await resolve.resolve_value(container, FieldKind.URL),
            timestamp=await resolve.resolve_value(container, FieldKind.TIMESTAMP),
            likes_count=await resolve.resolve_count(container, FieldKind.LIKES),
            comments_count=comments_count,
            shares_count=await resolve.resolve_count(container, FieldKind.SHARES),
            images=await resolve.resolve_all(container, FieldKind.IMAGES),
            title=await resolve.resolve_value(container, FieldKind.TITLE),
            price=await resolve.resolve_value(container, FieldKind.PRICE),
            location=await resolve.resolve_value(container, FieldKind.LOCATION),
            comments=comments,
        )

    async def extract_text(self, container: PageElement) -> str:
        fragments = await self.resolver.collect_texts(container, FieldKind.TEXT)
        if fragments:
            return " ".join(fragments).strip()
        try:
            return clean_text(await container.text())
        except BrowserError:
            return ""

    # ──────────────────────────────────────
    # Comments
    # ──────────────────────────────────────

    async def expand_comments(self, session: BrowsingSession, container: PageElement) -> int:
        clicked = 0
        for locator in COMMENT_EXPAND_LOCATORS:
            try:
                buttons = await container.find_all(locator)
            except BrowserError:
                continue
            for button in buttons:
                if clicked >= MAX_COMMENT_EXPANSIONS:
                    return clicked
                try:
                    await session.execute_script(SCROLL_INTO_VIEW_JS, button)
                    await button.click()
                    clicked += 1
                    await session.sleep(self.timing.comment_expand_settle_ms)
                except BrowserError:
                    continue
        return clicked

    async def extract_comments(
        self,
        session: BrowsingSession,
        container: PageElement,
        limit: int,
    ) -> list[CommentItem]:
        await self.expand_comments(session, container)

        elements: list[PageElement] = []
        for locator in COMMENT_CONTAINER_LOCATORS:
            try:
                elements = await container.find_all(locator)
            except BrowserError:
                continue
            if elements:
                logger.debug("Found %d comments with %s", len(elements), locator)
                break

        comments: list[CommentItem] = []
        for index, element in enumerate(elements[:limit], start=1):
            try:
                comment = await self.extract_comment(element)
            except BrowserError as e:
                logger.warning("Failed to extract comment %d: %s", index, e)
                continue
            if comment is not None:
                comments.append(comment)
        return comments

    async def extract_comment(self, element: PageElement) -> CommentItem | None:
        text = await self.resolver.resolve_value(element, FieldKind.COMMENT_TEXT)
        if not text:
            text = (await element.text()).strip()
        if not text:
            return None

        author = await self.resolver.resolve(element, FieldKind.COMMENT_AUTHOR)
        return CommentItem(
            author_name=author.value if author else None,
            author_url=await _link_of(author),
            text=text,
            likes_count=await self.resolver.resolve_count(element, FieldKind.COMMENT_LIKES),
            timestamp=await self.resolver.resolve_value(element, FieldKind.COMMENT_TIMESTAMP),
        )

    # ──────────────────────────────────────
    # Diagnostics
    # ──────────────────────────────────────

    async def _emit_empty(self, session: BrowsingSession, error: ExtractionEmpty) -> None:
        try:
            markup = await session.page_markup()
        except BrowserError as e:
            markup = ""
            logger.warning("Could not capture page markup: %s", e)

        event = DiagnosticEvent(
            kind="no_post_containers",
            url=error.url,
            title=error.title,
            markup=markup,
        )
        try:
            self.diagnostics.emit(event)
        except Exception:
            logger.exception("Diagnostics sink failed")
