"""Scraped content models.

Counts are plain non-negative integers (defaulting to 0) and timestamps are
absolute UTC datetimes; relative strings such as "2h" are resolved during
extraction, never stored.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommentItem(BaseModel):
    """A comment on a post.

    Attributes:
        author_name: Display name of the commenter
        author_url: Canonical profile URL of the commenter
        text: Comment body (required, non-empty)
        likes_count: Reactions on the comment
        timestamp: Absolute time the comment was written
    """

    author_name: Optional[str] = None
    author_url: Optional[str] = None
    text: str
    likes_count: int = Field(default=0, ge=0)
    timestamp: Optional[datetime] = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment text must not be empty")
        return v


class PostItem(BaseModel):
    """A post from a group feed.

    Attributes:
        text: Post body
        author_name: Display name of the author
        author_url: Canonical profile URL of the author
        url: Canonical permalink (the identity key when present)
        timestamp: Absolute publish time
        likes_count: Reaction count
        comments_count: Comment count as shown on the post
        shares_count: Share count
        images: Image URLs in document order
        title: Marketplace listing title
        price: Marketplace price, as displayed (e.g. "$1,200")
        location: Marketplace location
        comments: Comments owned by this post
    """

    text: str = ""
    author_name: Optional[str] = None
    author_url: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[datetime] = None
    likes_count: int = Field(default=0, ge=0)
    comments_count: int = Field(default=0, ge=0)
    shares_count: int = Field(default=0, ge=0)
    images: list[str] = Field(default_factory=list)
    title: Optional[str] = None
    price: Optional[str] = None
    location: Optional[str] = None
    comments: list[CommentItem] = Field(default_factory=list)


class ScrapeRequest(BaseModel):
    """Parameters of one feed scrape. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(min_length=1)
    max_posts: int = Field(default=50, ge=1)
    include_comments: bool = True
    max_comments_per_post: int = Field(default=20, ge=0)


class FeedSnapshot(BaseModel):
    """What the extraction side produced for one feed, before persistence."""

    feed_name: Optional[str] = None
    member_count: Optional[int] = None
    posts: list[PostItem] = Field(default_factory=list)


class ScrapeResult(BaseModel):
    """Outcome of ``scrape_feed``: extracted posts plus persistence tallies."""

    success: bool
    message: str
    feed_name: Optional[str] = None
    member_count: Optional[int] = None
    posts: list[PostItem] = Field(default_factory=list)
    saved_count: int = 0
    skipped_count: int = 0


class StoredPost(PostItem):
    """A post as read back from the record store."""

    id: int
    content_hash: str
    created_at: Optional[datetime] = None
