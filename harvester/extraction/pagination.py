"""Pagination Controller.

Scrolls the feed and pokes "load more" affordances until the document stops
growing or the attempt budget runs out. A stall is the normal way out.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from harvester.browser.base import BrowsingSession, PageElement
from harvester.config.settings import TimingSettings
from harvester.errors import BrowserError

from .selectors import LOAD_MORE_LOCATORS, TRUNCATED_POST_LOCATORS

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
DOCUMENT_HEIGHT_JS = "() => document.body.scrollHeight"

STALL_LIMIT = 3
MAX_TRUNCATED_EXPANSIONS = 20


@dataclass(frozen=True)
class PaginationReport:
    attempts: int
    final_height: int
    stalled: bool


def attempt_budget(max_posts: int) -> int:
    """Roughly ten posts load per scroll, plus slack for slow pages."""
    return math.ceil(max_posts / 10) + 5


async def _first_visible(session: BrowsingSession, locators: Sequence[str]) -> PageElement | None:
    for locator in locators:
        try:
            elements = await session.find_all(locator)
        except BrowserError:
            continue
        for element in elements:
            try:
                if await element.is_visible():
                    return element
            except BrowserError:
                continue
    return None


async def expand(session: BrowsingSession, max_posts: int, timing: TimingSettings) -> PaginationReport:
    """Grow the feed until it stalls for three attempts or the budget is spent."""
    budget = attempt_budget(max_posts)
    previous_height = 0
    no_growth = 0
    attempts = 0
    height = 0

    while attempts < budget:
        attempts += 1
        await session.execute_script(SCROLL_TO_BOTTOM_JS)
        await session.sleep(timing.scroll_settle_ms)

        height = int(await session.execute_script(DOCUMENT_HEIGHT_JS) or 0)
        if height > previous_height:
            no_growth = 0
            previous_height = height
        else:
            no_growth += 1
            logger.debug("No growth (%d/%d) at height %d", no_growth, STALL_LIMIT, height)

        button = await _first_visible(session, LOAD_MORE_LOCATORS)
        if button is not None:
            try:
                await button.click()
                await session.sleep(timing.load_more_settle_ms)
            except BrowserError as e:
                logger.debug("Load-more click failed: %s", e)

        if no_growth >= STALL_LIMIT:
            logger.info("Feed stopped growing after %d attempts (height %d)", attempts, height)
            return PaginationReport(attempts=attempts, final_height=height, stalled=True)

    logger.info("Pagination budget of %d attempts spent (height %d)", budget, height)
    return PaginationReport(attempts=attempts, final_height=height, stalled=False)


async def expand_truncated(
    session: BrowsingSession,
    timing: TimingSettings,
    limit: int = MAX_TRUNCATED_EXPANSIONS,
) -> int:
    """Click "See more" on truncated post bodies; returns the number of clicks."""
    clicked = 0
    for locator in TRUNCATED_POST_LOCATORS:
        try:
            links = await session.find_all(locator)
        except BrowserError:
            continue
        for link in links:
            if clicked >= limit:
                return clicked
            try:
                await link.click()
                clicked += 1
                await session.sleep(timing.expand_settle_ms)
            except BrowserError:
                continue
    if clicked:
        logger.info("Expanded %d truncated posts", clicked)
    return clicked
