"""Record Store backed by SQLAlchemy.

The async interface matches the rest of the harvester; the work itself is
short synchronous SQLite transactions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from harvester.errors import StoreConflict
from harvester.models.content import CommentItem, PostItem, StoredPost

from .database import Database
from .models import CommentRow, PostRow

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def find_by_url(self, url: str) -> StoredPost | None: ...

    async def find_by_fingerprint(self, content_hash: str) -> StoredPost | None: ...

    async def insert_with_children(self, post: PostItem, content_hash: str) -> StoredPost: ...

    async def count(self) -> int: ...

    async def delete_all(self) -> int: ...

    async def list_posts(self) -> list[StoredPost]: ...


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are stored as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _to_stored(row: PostRow, with_comments: bool = True) -> StoredPost:
    comments = []
    if with_comments:
        comments = [
            CommentItem(
                author_name=c.author_name,
                author_url=c.author_url,
                text=c.text,
                likes_count=c.likes_count or 0,
                timestamp=_from_db_time(c.timestamp),
            )
            for c in row.comments
        ]
    return StoredPost(
        id=row.id,
        content_hash=row.content_hash,
        created_at=_from_db_time(row.created_at),
        text=row.text or "",
        author_name=row.author_name,
        author_url=row.author_url,
        url=row.url,
        timestamp=_from_db_time(row.timestamp),
        likes_count=row.likes_count or 0,
        comments_count=row.comments_count or 0,
        shares_count=row.shares_count or 0,
        images=row.get_images(),
        title=row.title,
        price=row.price,
        location=row.location,
        comments=comments,
    )


class SqlRecordStore:
    """Posts and comments in SQLite.

    Usage:
        store = SqlRecordStore(Database("data/harvester.db"))
        await store.insert_with_children(post, content_hash)
    """

    def __init__(self, db: Database):
        self.db = db
        self.db.init_db()

    async def find_by_url(self, url: str) -> StoredPost | None:
        with self.db.transaction() as session:
            row = session.query(PostRow).filter(PostRow.url == url).first()
            return _to_stored(row, with_comments=False) if row else None

    async def find_by_fingerprint(self, content_hash: str) -> StoredPost | None:
        with self.db.transaction() as session:
            row = session.query(PostRow).filter(PostRow.content_hash == content_hash).first()
            return _to_stored(row, with_comments=False) if row else None

    async def insert_with_children(self, post: PostItem, content_hash: str) -> StoredPost:
        """Insert a post and all its comments in one transaction.

        Raises:
            StoreConflict: the url or content hash is already stored
        """
        row = PostRow(
            text=post.text,
            author_name=post.author_name,
            author_url=post.author_url,
            url=post.url,
            content_hash=content_hash,
            timestamp=_to_db_time(post.timestamp),
            likes_count=post.likes_count,
            comments_count=post.comments_count,
            shares_count=post.shares_count,
            title=post.title,
            price=post.price,
            location=post.location,
        )
        row.set_images(post.images)
        row.comments = [
            CommentRow(
                author_name=c.author_name,
                author_url=c.author_url,
                text=c.text,
                likes_count=c.likes_count,
                timestamp=_to_db_time(c.timestamp),
            )
            for c in post.comments
        ]

        try:
            with self.db.transaction() as session:
                session.add(row)
                session.flush()
                stored = _to_stored(row)
        except IntegrityError as e:
            raise StoreConflict(f"Post already stored: {post.url or content_hash}") from e

        logger.info("Saved post %d with %d comments", stored.id, len(stored.comments))
        return stored

    async def count(self) -> int:
        with self.db.transaction() as session:
            return session.query(PostRow).count()

    async def delete_all(self) -> int:
        """Delete every post and comment; returns the number of posts removed."""
        with self.db.transaction() as session:
            session.query(CommentRow).delete()
            deleted = session.query(PostRow).delete()
        logger.info("Deleted %d posts", deleted)
        return deleted

    async def list_posts(self) -> list[StoredPost]:
        """All posts with their comments, newest first."""
        with self.db.transaction() as session:
            rows = (
                session.query(PostRow)
                .options(selectinload(PostRow.comments))
                .order_by(PostRow.created_at.desc(), PostRow.id.desc())
                .all()
            )
            return [_to_stored(row) for row in rows]
