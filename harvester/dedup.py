"""Deduplication Gate: at-most-once storage per logical post.

A post is identified by its canonical URL when it has one and by its content
fingerprint otherwise. ``save`` checks first and inserts second; if another
writer slips in between, the store's unique indexes reject the insert and the
resulting StoreConflict is reported as a skip.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Literal

from harvester.db.store import RecordStore
from harvester.errors import StoreConflict
from harvester.models.content import PostItem
from harvester.normalize import canonical_timestamp

logger = logging.getLogger(__name__)

SaveResult = Literal["saved", "skipped"]


def fingerprint(post: PostItem) -> str:
    """sha256 over ``author|text|timestamp`` (empty strings for missing parts)."""
    content = f"{post.author_name or ''}|{post.text or ''}|{canonical_timestamp(post.timestamp)}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class DeduplicationGate:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def exists(self, post: PostItem) -> bool:
        if post.url and await self.store.find_by_url(post.url) is not None:
            logger.debug("Post already exists with URL: %s", post.url)
            return True

        content_hash = fingerprint(post)
        if await self.store.find_by_fingerprint(content_hash) is not None:
            logger.debug("Post already exists with content hash: %s", content_hash)
            return True
        return False

    async def save(self, post: PostItem) -> SaveResult:
        if await self.exists(post):
            logger.debug("Skipping duplicate post: %s", post.url or "no URL")
            return "skipped"
        try:
            await self.store.insert_with_children(post, fingerprint(post))
        except StoreConflict as e:
            logger.info("Duplicate detected at insert, skipping: %s", e)
            return "skipped"
        return "saved"
