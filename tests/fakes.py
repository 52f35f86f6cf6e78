"""In-memory stand-ins for the browser and the credential store.

Pages are scripted as ``{locator: [FakeElement, ...]}`` maps; anything not in
the map matches nothing.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Optional, Sequence

from harvester.errors import BrowserError, BrowserTimeout, CredentialStoreError
from harvester.extraction.pagination import DOCUMENT_HEIGHT_JS
from harvester.extraction.selectors import COMMENT_CONTAINER_LOCATORS
from harvester.models.cookies import CookieEntry, SessionCredential

_ids = itertools.count(1)


class FakeElement:
    def __init__(
        self,
        text: str = "",
        attrs: Optional[dict[str, str]] = None,
        children: Optional[dict[str, list[FakeElement]]] = None,
        visible: bool = True,
        on_click: Optional[Callable[[], None]] = None,
        fail_text: bool = False,
        fail_click: bool = False,
        identity: Optional[str] = None,
    ) -> None:
        self._text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.on_click = on_click
        self.fail_text = fail_text
        self.fail_click = fail_click
        self._identity = identity or f"el-{next(_ids)}"
        self.clicks = 0
        self.filled: Optional[str] = None
        self.queried: list[str] = []

    async def find_all(self, locator: str) -> list[FakeElement]:
        self.queried.append(locator)
        return list(self.children.get(locator, []))

    async def text(self) -> str:
        if self.fail_text:
            raise BrowserError("stale element")
        return self._text

    async def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    async def click(self) -> None:
        if self.fail_click:
            raise BrowserError("element not clickable")
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def fill(self, value: str) -> None:
        self.filled = value

    async def is_visible(self) -> bool:
        return self.visible

    async def identity(self) -> str:
        return self._identity


class FakeBrowser:
    """Scripted BrowsingSession. ``sleep`` returns immediately but is recorded."""

    def __init__(
        self,
        url: str = "about:blank",
        elements: Optional[dict[str, list[FakeElement]]] = None,
        markup: str = "<html></html>",
        title: str = "",
        heights: Sequence[int] = (1000,),
        cookies: Optional[list[CookieEntry]] = None,
    ) -> None:
        self.url = url
        self.elements = elements or {}
        self.markup = markup
        self.page_title = title
        self.heights = list(heights)
        self.cookies = list(cookies or [])
        self.navigations: list[str] = []
        self.reloads = 0
        self.slept: list[int] = []
        self.scripts: list[str] = []
        self.closed = False
        self.on_sleep: Optional[Callable[[FakeBrowser], None]] = None
        self.on_reload: Optional[Callable[[FakeBrowser], None]] = None
        self.fail_navigate: Optional[Exception] = None
        self._height_index = 0

    async def find_all(self, locator: str) -> list[FakeElement]:
        return list(self.elements.get(locator, []))

    async def navigate(self, url: str) -> None:
        if self.fail_navigate:
            raise self.fail_navigate
        self.navigations.append(url)
        self.url = url

    async def reload(self) -> None:
        self.reloads += 1
        if self.on_reload:
            self.on_reload(self)

    async def sleep(self, ms: int) -> None:
        self.slept.append(ms)
        if self.on_sleep:
            self.on_sleep(self)

    async def wait_until_present(self, locator: str, timeout_ms: int) -> FakeElement:
        matches = self.elements.get(locator)
        if not matches:
            raise BrowserTimeout(f"{locator} did not appear within {timeout_ms}ms")
        return matches[0]

    async def execute_script(self, script: str, *args: Any) -> Any:
        self.scripts.append(script)
        if script == DOCUMENT_HEIGHT_JS:
            index = min(self._height_index, len(self.heights) - 1)
            self._height_index += 1
            return self.heights[index]
        return None

    async def current_url(self) -> str:
        return self.url

    async def page_markup(self) -> str:
        return self.markup

    async def title(self) -> str:
        return self.page_title

    async def get_cookies(self) -> list[CookieEntry]:
        return list(self.cookies)

    async def add_cookies(self, cookies: Sequence[CookieEntry]) -> None:
        self.cookies.extend(cookies)

    async def close(self) -> None:
        self.closed = True


class MemoryCredentialStore:
    """CredentialStore over a dict; records every save and delete."""

    def __init__(self, fail_save: bool = False) -> None:
        self.credentials: dict[str, SessionCredential] = {}
        self.saved: list[SessionCredential] = []
        self.deleted: list[str] = []
        self.fail_save = fail_save

    async def exists(self, name: str) -> bool:
        return name in self.credentials

    async def load(self, name: str) -> SessionCredential | None:
        return self.credentials.get(name)

    async def save(self, credential: SessionCredential) -> None:
        if self.fail_save:
            raise CredentialStoreError("disk full")
        self.saved.append(credential)
        self.credentials[credential.name] = credential

    async def delete(self, name: str) -> None:
        self.deleted.append(name)
        self.credentials.pop(name, None)


def browser_factory(browser: FakeBrowser):
    """A browser factory that hands out ``browser`` and counts launches."""

    async def factory(settings) -> FakeBrowser:
        factory.launches += 1
        return browser

    factory.launches = 0
    return factory


# ──────────────────────────────────────
# Page builders
# ──────────────────────────────────────

COMMENT_COUNT_LOCATOR = "xpath=.//a[contains(text(), 'Comment') or contains(text(), 'comment')]"
MEMBER_COUNT_LOCATOR = "xpath=//div[contains(text(), 'member') or contains(text(), 'Member')]"


def make_comment(author: str, text: str) -> FakeElement:
    return FakeElement(
        f"{author}\n{text}\nLike\nReply",
        children={
            "css=div[dir='auto']": [FakeElement(text)],
            "css=a": [FakeElement(author, attrs={"href": f"https://m.facebook.com/{author.lower()}?comment_id=1"})],
        },
    )


def make_post(
    text: str = "Selling my bike, barely used",
    author: str = "Jane Doe",
    post_id: str = "2",
    comments: int = 0,
    comment_elements=None,
    extra_children=None,
) -> FakeElement:
    children = {
        "css=h2 a": [FakeElement(author, attrs={"href": "https://m.facebook.com/user/1?ref=feed"})],
        "css=div[dir='auto']": [FakeElement(text), FakeElement("Like")],
        "css=a[href*='/posts/']": [
            FakeElement("2h", attrs={"href": f"https://m.facebook.com/groups/1/posts/{post_id}?ref=x"})
        ],
        "css=abbr": [FakeElement("2h")],
        "css=img": [
            FakeElement(attrs={"src": "https://scontent.example/photo.jpg"}),
            FakeElement(attrs={"src": "https://static.example/emoji.png"}),
        ],
    }
    if comments:
        children[COMMENT_COUNT_LOCATOR] = [FakeElement(f"{comments} comments")]
    if comment_elements is not None:
        children[COMMENT_CONTAINER_LOCATORS[0]] = comment_elements
    if extra_children:
        children.update(extra_children)
    return FakeElement(f"{author}\n{text}\nLike Comment Share", children=children)
