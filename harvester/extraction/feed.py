"""Group feed scrape: load the feed, grow it, extract it."""

from __future__ import annotations

import logging

from harvester.browser.base import BrowsingSession
from harvester.config.settings import TimingSettings
from harvester.errors import BrowserTimeout
from harvester.models.content import FeedSnapshot, ScrapeRequest

from .pagination import expand, expand_truncated
from .pipeline import ExtractionPipeline
from .selectors import PAGE_LOAD_INDICATORS, FieldKind

logger = logging.getLogger(__name__)


def feed_url(feed_base_url: str, group_id: str) -> str:
    return f"{feed_base_url.rstrip('/')}/groups/{group_id}"


async def wait_for_feed(session: BrowsingSession, timing: TimingSettings) -> bool:
    """Wait for any page-load indicator. A miss is logged, not raised."""
    for locator in PAGE_LOAD_INDICATORS:
        try:
            await session.wait_until_present(locator, timing.page_load_wait_ms)
            logger.debug("Feed loaded (%s)", locator)
            return True
        except BrowserTimeout:
            continue
    logger.warning("No page-load indicator appeared, continuing anyway")
    return False


async def scrape_feed(
    session: BrowsingSession,
    request: ScrapeRequest,
    pipeline: ExtractionPipeline,
    feed_base_url: str,
) -> FeedSnapshot:
    """Scrape one group feed on an authenticated session."""
    timing = pipeline.timing
    url = feed_url(feed_base_url, request.group_id)
    logger.info("Navigating to group: %s", url)
    await session.navigate(url)

    await wait_for_feed(session, timing)
    await session.sleep(timing.feed_settle_ms)

    feed_name = await pipeline.resolver.resolve_value(session, FieldKind.FEED_NAME)
    member_count = await pipeline.resolver.resolve_value(session, FieldKind.MEMBER_COUNT)
    logger.info("Group: %s (%s members)", feed_name or "?", member_count if member_count is not None else "?")

    await expand(session, request.max_posts, timing)
    await expand_truncated(session, timing)

    posts = await pipeline.extract_posts(session, request)
    logger.info("Extracted %d posts from %s", len(posts), url)
    return FeedSnapshot(feed_name=feed_name, member_count=member_count, posts=posts)
