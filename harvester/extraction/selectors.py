"""Ranked locator candidates for every field and control the harvester reads.

The feed markup changes often and differs between the mobile and desktop
sites, so each field has several candidates, best first. When the markup
drifts, this file is the one to update.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from harvester.normalize import canonicalize_url, parse_count, parse_relative_time


class FieldKind(str, Enum):
    """Semantic fields resolvable from a scope."""

    AUTHOR = "author"
    TEXT = "text"
    URL = "url"
    TIMESTAMP = "timestamp"
    LIKES = "likes"
    COMMENTS = "comments"
    SHARES = "shares"
    IMAGES = "images"
    PRICE = "price"
    LOCATION = "location"
    TITLE = "title"
    COMMENT_AUTHOR = "comment_author"
    COMMENT_TEXT = "comment_text"
    COMMENT_LIKES = "comment_likes"
    COMMENT_TIMESTAMP = "comment_timestamp"
    FEED_NAME = "feed_name"
    MEMBER_COUNT = "member_count"


@dataclass(frozen=True)
class Candidate:
    """One way of reading a field.

    Attributes:
        locator: Playwright selector evaluated against the scope
        attribute: Attribute to read; None reads the rendered text
        parse: Turns the raw string into the field value; None rejects it
        filter_noise: Reject content that is UI chrome ("Like", "Reply", ...)
    """

    locator: str
    attribute: str | None = None
    parse: Callable[[str], Any] | None = None
    filter_noise: bool = True


_PRICE_RE = re.compile(r"(?:R\$|[$€£])\s?\d[\d,.]*")

_IMAGE_SKIP_MARKERS = ("emoji", "static", "rsrc.php")


def parse_price(text: str) -> str | None:
    match = _PRICE_RE.search(text)
    return match.group(0) if match else None


def parse_title(text: str) -> str | None:
    return text if len(text) < 200 else None


def parse_content_image(src: str) -> str | None:
    """Keep photo URLs; drop emoji, static assets and sprite sheets."""
    if any(marker in src for marker in _IMAGE_SKIP_MARKERS):
        return None
    return src


def _count(locator: str, attribute: str | None = None) -> Candidate:
    return Candidate(locator, attribute=attribute, parse=parse_count, filter_noise=False)


FIELD_CANDIDATES: dict[FieldKind, tuple[Candidate, ...]] = {
    FieldKind.AUTHOR: (
        Candidate("css=h2 a"),
        Candidate("css=h3 a"),
        Candidate("css=strong a"),
        Candidate("css=a[href*='/groups/'][href*='/user/']"),
        Candidate("css=span.xt0psk2 a"),
        Candidate("css=a[data-sigil='feed-ufi-actor']"),
        Candidate("xpath=.//a[contains(@href, '/user/') or contains(@href, '/profile.php')]"),
    ),
    FieldKind.TEXT: (
        Candidate("css=div[dir='auto']"),
        Candidate("css=div[data-ad-preview='message']"),
        Candidate("css=div.userContent"),
        Candidate("css=div[data-sigil='m-feed-voice-subtitle']"),
        Candidate("css=div.story_body_container"),
        Candidate("css=p"),
        Candidate("xpath=.//span[contains(@class, 'x193iq5w')]"),
    ),
    FieldKind.URL: (
        Candidate("css=a[href*='/posts/']", attribute="href", parse=canonicalize_url, filter_noise=False),
        Candidate("css=a[href*='/permalink/']", attribute="href", parse=canonicalize_url, filter_noise=False),
        Candidate("css=abbr a", attribute="href", parse=canonicalize_url, filter_noise=False),
    ),
    FieldKind.TIMESTAMP: (
        Candidate("css=abbr", parse=parse_relative_time, filter_noise=False),
        Candidate("css=time", parse=parse_relative_time, filter_noise=False),
        Candidate("css=[data-sigil='m-feed-voice-subtitle'] abbr", parse=parse_relative_time, filter_noise=False),
    ),
    FieldKind.LIKES: (
        _count("xpath=.//a[contains(@href, 'ufi/reaction') or contains(text(), 'Like')]"),
        _count("css=[data-sigil='reactions-sentence']"),
    ),
    FieldKind.COMMENTS: (
        _count("xpath=.//a[contains(text(), 'Comment') or contains(text(), 'comment')]"),
        _count("xpath=.//span[contains(text(), 'comment')]"),
        _count("css=[data-sigil='comments-token']"),
    ),
    FieldKind.SHARES: (
        _count("xpath=.//a[contains(text(), 'Share') or contains(text(), 'share')]"),
        _count("xpath=.//span[contains(text(), 'share')]"),
        _count("css=[data-sigil='share-chevron-title']"),
    ),
    FieldKind.IMAGES: (
        Candidate("css=img", attribute="src", parse=parse_content_image, filter_noise=False),
    ),
    FieldKind.PRICE: (
        Candidate(
            "xpath=.//*[contains(text(), '$') or contains(text(), '€') or contains(text(), '£')]",
            parse=parse_price,
            filter_noise=False,
        ),
    ),
    FieldKind.LOCATION: (
        Candidate("css=[data-sigil='location']"),
        Candidate("xpath=.//*[contains(@aria-label, 'location') or contains(@aria-label, 'Location')]"),
    ),
    FieldKind.TITLE: (
        Candidate("css=strong", parse=parse_title),
        Candidate("css=h4", parse=parse_title),
    ),
    FieldKind.COMMENT_AUTHOR: (
        Candidate("css=a"),
    ),
    FieldKind.COMMENT_TEXT: (
        Candidate("css=div[dir='auto']"),
    ),
    FieldKind.COMMENT_LIKES: (
        _count("xpath=.//a[contains(text(), 'Like')]"),
    ),
    FieldKind.COMMENT_TIMESTAMP: (
        Candidate("css=abbr", parse=parse_relative_time, filter_noise=False),
        Candidate("css=time", parse=parse_relative_time, filter_noise=False),
    ),
    FieldKind.FEED_NAME: (
        Candidate("css=h3"),
        Candidate("css=h1"),
        Candidate("css=[data-sigil='group-name']"),
        Candidate("css=div[data-sigil='m-group-header'] h3"),
    ),
    FieldKind.MEMBER_COUNT: (
        _count("xpath=//div[contains(text(), 'member') or contains(text(), 'Member')]"),
        _count("css=[data-sigil='m-group-members-count']"),
    ),
}

# Post containers: role/attribute strategies first, legacy structure last.
POST_CONTAINER_LOCATORS: tuple[str, ...] = (
    "xpath=//div[@role='feed']//div[@role='article'][not(ancestor::div[@role='article'])]",
    "xpath=//div[@role='article'][not(ancestor::div[@role='article'])]",
    "css=div[data-pagelet*='FeedUnit']",
    "xpath=//div[@role='feed']/div[.//h2 and .//div[@dir='auto']]",
    "css=article",
    "css=div.userContentWrapper",
    "css=div.story_body_container",
    "xpath=//div[@data-ft and contains(@data-ft, 'top_level_post')]",
)

# Content-driven discovery when every container strategy comes up empty.
DISCOVERY_LEAF_LOCATOR = "css=div[dir='auto']"
DISCOVERY_ANCESTOR_LOCATOR = (
    "xpath=./ancestor::div[contains(@class, 'x1ja2u2z') or contains(@class, 'x1lliihq')][1]"
)
AUTHOR_LANDMARK_LOCATOR = "css=h2 a, h3 a"

COMMENT_CONTAINER_LOCATORS: tuple[str, ...] = (
    "xpath=.//div[@role='article']",
    "css=div[aria-label*='Comment']",
    "css=div[data-sigil='comment']",
    "css=div[data-ft*='comment']",
    "xpath=.//ul//div[contains(@class, 'x1ja2u2z')]//div[@dir='auto']/ancestor::div[2]",
)

COMMENT_EXPAND_LOCATORS: tuple[str, ...] = (
    "xpath=.//a[contains(text(), 'View more comments') or contains(text(), 'See more comments')]",
    "xpath=.//a[contains(text(), 'View previous comments')]",
    "xpath=.//div[@role='button' and contains(text(), 'View')]",
    "css=[aria-label*='View more comments']",
)

# Pagination affordances that load the next page of posts.
LOAD_MORE_LOCATORS: tuple[str, ...] = (
    "xpath=//a[contains(text(), 'See More') or contains(text(), 'Show more') or contains(text(), 'Ver mais')]",
    "xpath=//div[contains(text(), 'See More') or contains(text(), 'Show more') or contains(text(), 'Ver mais')]",
    "css=[data-sigil='m-see-more']",
)

# "See more" links on truncated post bodies.
TRUNCATED_POST_LOCATORS: tuple[str, ...] = (
    "xpath=//a[contains(text(), 'See more') or contains(text(), 'See More')]",
    "xpath=//div[@role='button' and contains(text(), 'See more')]",
)

PAGE_LOAD_INDICATORS: tuple[str, ...] = (
    "css=div[dir='auto']",
    "css=h2",
    "css=article",
    "css=div[role='feed']",
)

# Login controls
EMAIL_FIELD_LOCATORS: tuple[str, ...] = (
    "css=#email",
    "css=[name='email']",
    "css=input[type='text'][name='email']",
    "css=input[type='email']",
    "css=input[data-testid='royal_email']",
)

PASSWORD_FIELD_LOCATORS: tuple[str, ...] = (
    "css=#pass",
    "css=[name='pass']",
    "css=input[type='password']",
    "css=input[data-testid='royal_pass']",
)

SUBMIT_BUTTON_LOCATORS: tuple[str, ...] = (
    "css=[name='login']",
    "css=button[type='submit']",
    "css=button[name='login']",
    "css=input[type='submit']",
    "css=button[data-testid='royal_login_button']",
)

LOGIN_FORM_EMAIL_LOCATOR = "css=#email"
LOGIN_FORM_PASSWORD_LOCATOR = "css=#pass"
FEED_LANDMARK_LOCATOR = "css=div[role='feed'], div[role='main'], div[role='navigation']"
