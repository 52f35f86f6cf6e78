"""Selector Resolution Engine.

Every field the pipeline reads goes through one of the functions here. A
field is described by a ranked list of ``Candidate`` locators; the resolver
walks them in order and returns the first that yields real content:

1. Query the scope with the candidate's locator
2. Take the first matched element with non-empty content
3. Reject the candidate if that content is UI noise or fails to parse
4. Otherwise that value wins

Exhausting every candidate yields None (or the field's zero default for
counts), never an exception. Element-level browser failures count as "no
content"; a crashed session still propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from harvester.browser.base import PageElement, Scope
from harvester.errors import BrowserError
from harvester.normalize import is_ui_text

from .selectors import FIELD_CANDIDATES, Candidate, FieldKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """A resolved field value and the element it came from."""

    value: Any
    element: PageElement
    locator: str


async def _read(element: PageElement, candidate: Candidate) -> str:
    if candidate.attribute:
        raw = await element.get_attribute(candidate.attribute)
    else:
        raw = await element.text()
    return (raw or "").strip()


async def _query(scope: Scope, locator: str) -> list[PageElement]:
    try:
        return await scope.find_all(locator)
    except BrowserError as e:
        logger.debug("Locator failed: %s (%s)", locator, e)
        return []


class SelectorResolver:
    """Resolves semantic fields against a scope using ranked candidates."""

    def __init__(self, candidates: Mapping[FieldKind, Sequence[Candidate]] | None = None) -> None:
        self.candidates = candidates if candidates is not None else FIELD_CANDIDATES

    async def try_candidate(self, scope: Scope, candidate: Candidate) -> Resolution | None:
        """Evaluate one candidate; None means "move on to the next one"."""
        for element in await _query(scope, candidate.locator):
            try:
                content = await _read(element, candidate)
            except BrowserError:
                continue
            if not content:
                continue

            # The first element with content decides this candidate.
            if candidate.filter_noise and is_ui_text(content):
                logger.debug("Rejected UI text %r from %s", content[:40], candidate.locator)
                return None
            if candidate.parse is None:
                return Resolution(content, element, candidate.locator)
            value = candidate.parse(content)
            if value is None:
                return None
            return Resolution(value, element, candidate.locator)
        return None

    async def resolve(self, scope: Scope, kind: FieldKind) -> Resolution | None:
        for candidate in self.candidates.get(kind, ()):
            resolution = await self.try_candidate(scope, candidate)
            if resolution is not None:
                return resolution
        logger.debug("No candidate matched for %s", kind.value)
        return None

    async def resolve_value(self, scope: Scope, kind: FieldKind) -> Any | None:
        resolution = await self.resolve(scope, kind)
        return resolution.value if resolution else None

    async def resolve_count(self, scope: Scope, kind: FieldKind) -> int:
        """Numeric field; absence is 0, not None."""
        value = await self.resolve_value(scope, kind)
        return value if isinstance(value, int) else 0

    async def resolve_all(self, scope: Scope, kind: FieldKind) -> list[Any]:
        """Every valid value from the first candidate that yields any, in document order."""
        for candidate in self.candidates.get(kind, ()):
            values: list[Any] = []
            for element in await _query(scope, candidate.locator):
                try:
                    content = await _read(element, candidate)
                except BrowserError:
                    continue
                if not content:
                    continue
                if candidate.filter_noise and is_ui_text(content):
                    continue
                value = candidate.parse(content) if candidate.parse else content
                if value is not None:
                    values.append(value)
            if values:
                return values
        return []

    async def collect_texts(self, scope: Scope, kind: FieldKind) -> list[str]:
        """All non-noise text fragments across every candidate, deduplicated in order."""
        fragments: list[str] = []
        seen: set[str] = set()
        for candidate in self.candidates.get(kind, ()):
            for element in await _query(scope, candidate.locator):
                try:
                    content = await _read(element, candidate)
                except BrowserError:
                    continue
                if not content or is_ui_text(content) or content in seen:
                    continue
                seen.add(content)
                fragments.append(content)
        return fragments
